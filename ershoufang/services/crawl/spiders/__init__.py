from .area_spider import AreaSpider
from .detail_spider import DetailSpider
from .house_spider import HouseSpider
from .page_spider import PageSpider
from .sub_area_spider import SubAreaSpider

__all__ = [
    "AreaSpider",
    "SubAreaSpider",
    "PageSpider",
    "DetailSpider",
    "HouseSpider",
]
