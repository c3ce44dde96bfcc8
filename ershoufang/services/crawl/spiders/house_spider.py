from __future__ import annotations

from typing import Any, Dict

from selectolax.parser import HTMLParser

from ershoufang.models.house import House

from ..base import Spider, child_text, remove_comma
from ..fields import extract_base_info, extract_transaction_info, parse_float, split_location


class HouseSpider(Spider):
    """Builds one House record from a listing-detail page.

    The header fields (title, prices, community, location) come from fixed
    selectors; the rest from the base-info and transaction-info label tables.
    """

    name = "house"

    def parse(self, doc: HTMLParser, url: str, *, house_id: int = 0) -> House:
        return House(**self.extract(doc, url), id=house_id)

    def extract(self, doc: HTMLParser, url: str) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            "title": remove_comma(child_text(doc, "div.title > h1")),
            "url": url,
            "total_price": parse_float(child_text(doc, "div.price > span.total"), "total price"),
            "total_price_unit": child_text(doc, "div.price > span.unit"),
            "community": child_text(doc, "div.communityName > a.info"),
        }

        unit = child_text(doc, "div.unitPrice > span.unitPriceValue > i")
        unit_price = child_text(doc, "div.unitPrice > span.unitPriceValue")
        if unit:
            unit_price = unit_price.replace(unit, "")
        fields["unit_price_unit"] = unit
        fields["unit_price"] = parse_float(unit_price, "unit price")

        fields.update(split_location(child_text(doc, "div.areaName > span.info")))
        fields.update(extract_base_info(doc))
        fields.update(extract_transaction_info(doc))
        return fields
