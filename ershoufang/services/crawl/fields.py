"""Label-driven field extraction for Lianjia listing-detail pages.

A listing page carries two label/value blocks ("base info" and "transaction
info"). Each item's label is looked up in a closed table that names the
House attribute it fills and how the raw value is converted. Labels that are
not in the tables are ignored, so the site can add or reorder attributes
without breaking extraction.

Conversion failures are logged and leave the attribute at its default; they
never abort the record.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Tuple

from selectolax.parser import HTMLParser

from .base import child_text, remove_comma, remove_space, set_null

logger = logging.getLogger(__name__)

AREA_UNIT = "㎡"

BASE_INFO_ITEMS = "div.base > div.content > ul > li"
TRANSACTION_ITEMS = "div.transaction > div.content > ul > li"

Converter = Callable[[str], Any]


def parse_float(text: str, what: str) -> float:
    try:
        return float(text.strip())
    except ValueError:
        logger.info("Can't parse the %s from %r.", what, text)
        return 0.0


def parse_area(text: str, what: str = "area") -> float:
    return parse_float(text.replace(AREA_UNIT, ""), what)


def _text(value: str) -> str:
    return value


BASE_INFO_FIELDS: Dict[str, Tuple[str, Converter]] = {
    "房屋户型": ("type", _text),
    "所在楼层": ("floor", _text),
    "建筑面积": ("gross_area", lambda v: parse_area(v, "gross area")),
    "户型结构": ("structure", _text),
    "套内面积": ("net_area", lambda v: parse_area(v, "net area")),
    "建筑类型": ("building_type", _text),
    "房屋朝向": ("orientation", _text),
    "建筑结构": ("building_structure", _text),
    "装修情况": ("decoration", _text),
    "梯户比例": ("elevator_ratio", _text),
    "供暖方式": ("heating_mode", _text),
    "配备电梯": ("elevator", _text),
}

TRANSACTION_FIELDS: Dict[str, Tuple[str, Converter]] = {
    "挂牌时间": ("listing_time", _text),
    "交易权属": ("transaction", _text),
    "上次交易": ("last_transaction_time", _text),
    "房屋用途": ("usage", _text),
    "房屋年限": ("year", _text),
    "产权所属": ("property_owner", _text),
    "抵押信息": ("mortgage", _text),
    "房本备件": ("property_cert", _text),
}


def apply_label(fields: Dict[str, Any], table: Dict[str, Tuple[str, Converter]], label: str, value: str) -> bool:
    """Store the converted value under the attribute the label maps to.

    Returns False (and leaves ``fields`` untouched) for unknown labels.
    """
    target = table.get(label)
    if target is None:
        logger.debug("Ignoring unknown label %r", label)
        return False
    name, convert = target
    fields[name] = convert(value)
    return True


def base_info_pair(item: Any) -> Tuple[str, str]:
    label = remove_comma(child_text(item, "span.label"))
    value = item.text(deep=True)
    if label:
        value = value.replace(label, "")
    return label, set_null(value.strip())


def transaction_pair(item: Any) -> Tuple[str, str]:
    content = remove_space(child_text(item, "span"))
    label = child_text(item, "span.label")
    value = content.replace(label, "") if label else content
    return label, set_null(value)


def extract_base_info(doc: HTMLParser) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for item in doc.css(BASE_INFO_ITEMS):
        label, value = base_info_pair(item)
        apply_label(fields, BASE_INFO_FIELDS, label, value)
    return fields


def extract_transaction_info(doc: HTMLParser) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for item in doc.css(TRANSACTION_ITEMS):
        label, value = transaction_pair(item)
        apply_label(fields, TRANSACTION_FIELDS, label, value)
    return fields


def split_location(location: str) -> Dict[str, str]:
    """Map up to three whitespace-separated tokens to area, sub_area, ring_road."""
    tokens = location.split()
    if not 1 <= len(tokens) <= 3:
        logger.info("Location is not in the right format: %r", location)
        return {}
    return dict(zip(("area", "sub_area", "ring_road"), tokens))
