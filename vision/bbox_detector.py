def clamp_bbox_xyxy(bbox, W, H, pad=0):
    x1, y1, x2, y2 = bbox
    x1 = max(0, x1 - pad); y1 = max(0, y1 - pad)
    x2 = min(W, x2 + pad); y2 = min(H, y2 + pad)
    if x2 <= x1 or y2 <= y1:
        return None
    return (x1, y1, x2, y2)


def xywh_to_xyxy(rect):
    x, y, w, h = (int(v) for v in rect)
    return (x, y, x + w, y + h)
