from __future__ import annotations

from dataclasses import dataclass
from typing import List

# CSV header, in the order House.to_row() emits columns.
COLUMNS: List[str] = [
    "房屋ID", "页面标题", "页面链接", "房屋总价", "总价单位", "房屋单价", "单价单位", "小区名称",
    "小区位置", "细分区域", "环路范围", "房屋类型", "所在楼层", "建筑面积", "户型结构", "套内面积",
    "建筑类型", "房屋朝向", "建筑结构", "装修情况", "配备电梯", "梯户比例", "供暖方式", "挂牌时间",
    "交易权属", "上次交易", "房屋用途", "房屋年限", "产权所属", "抵押信息", "房本备件",
]


def _decimal2(value: float) -> str:
    return f"{value:.2f}"


@dataclass(frozen=True)
class House:
    """One Lianjia second-hand listing, as written to the output CSV."""

    id: int = 0
    title: str = ""
    url: str = ""
    total_price: float = 0.0
    total_price_unit: str = ""
    unit_price: float = 0.0
    unit_price_unit: str = ""
    community: str = ""
    area: str = ""
    sub_area: str = ""
    ring_road: str = ""
    type: str = ""
    floor: str = ""
    gross_area: float = 0.0
    structure: str = ""
    net_area: float = 0.0
    building_type: str = ""
    orientation: str = ""
    building_structure: str = ""
    decoration: str = ""
    elevator: str = ""
    elevator_ratio: str = ""
    heating_mode: str = ""
    listing_time: str = ""
    transaction: str = ""
    last_transaction_time: str = ""
    usage: str = ""
    year: str = ""
    property_owner: str = ""
    mortgage: str = ""
    property_cert: str = ""

    def to_row(self) -> List[str]:
        return [
            str(self.id),
            self.title,
            self.url,
            _decimal2(self.total_price),
            self.total_price_unit,
            _decimal2(self.unit_price),
            self.unit_price_unit,
            self.community,
            self.area,
            self.sub_area,
            self.ring_road,
            self.type,
            self.floor,
            _decimal2(self.gross_area),
            self.structure,
            _decimal2(self.net_area),
            self.building_type,
            self.orientation,
            self.building_structure,
            self.decoration,
            self.elevator,
            self.elevator_ratio,
            self.heating_mode,
            self.listing_time,
            self.transaction,
            self.last_transaction_time,
            self.usage,
            self.year,
            self.property_owner,
            self.mortgage,
            self.property_cert,
        ]
