"""目标尺寸计算。"""

import math


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_target_size(
    width: int,
    height: int,
    max_width: int | None = None,
    max_height: int | None = None,
) -> tuple[int, int]:
    """按最大宽高约束计算目标尺寸，保持宽高比且不放大。

    先按宽度收缩，再独立地按（可能已收缩的）高度收缩；两次收缩之间保留
    小数，最后统一四舍五入。宽度在第二次收缩中只会变小，所以结果不会超出
    任一约束。

    Args:
        width: 原始宽度
        height: 原始高度
        max_width: 最大宽度
        max_height: 最大高度

    Returns:
        tuple[int, int]: 目标宽高，至少为 1 像素
    """
    target_w: float = width
    target_h: float = height

    if max_width and target_w > max_width:
        target_h = target_h * max_width / target_w
        target_w = max_width

    if max_height and target_h > max_height:
        target_w = target_w * max_height / target_h
        target_h = max_height

    return max(1, _round_half_up(target_w)), max(1, _round_half_up(target_h))
