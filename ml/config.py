from domain.models import MaskStatus

# Model output order: index 0 = no mask, index 1 = mask
CLASSES = [MaskStatus.WITHOUT_MASK, MaskStatus.WITH_MASK]

DEFAULT_MODEL_PATH = "models/mask_detector.onnx"

IMG_SIZE = 224
MEAN = (0.485, 0.456, 0.406)
SCALE = 1.0 / 255.0
CROP_PADDING = 10
