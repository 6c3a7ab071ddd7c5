"""
Player product lifecycle: develop -> launch -> update -> discontinue.

These are collaborator-invoked actions; the monthly tick only reads the
active products and updates them through growth.py.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List

from catalog import ProductTypeKey, product_type
from entities import Product, ProductStatus, ResourceAllocation, new_id

logger = logging.getLogger(__name__)

UPDATE_QUALITY_GAIN = {
    "minor": 1.0,
    "major": 2.0,
    "maintenance": 0.0,
}


def launch_quality(allocation, type_key):
    """1-10 score: 10 minus a point per 10 points of L1 distance from the ideal split"""
    distance = allocation.distance(product_type(type_key).ideal_distribution)
    return max(1, 10 - int(distance // 10))


def acquisition_price(product):
    """Price to buy a rival's product: $50 per user scaled by quality"""
    return round(product.users * 50 * (product.quality / 10) * 1.5)


@dataclass
class ProductAcquisition:
    product_id: str
    source_name: str
    cost: float
    date: date


@dataclass
class Portfolio:
    owned: List[Product] = field(default_factory=list)
    in_development: List[Product] = field(default_factory=list)
    acquisitions: List[ProductAcquisition] = field(default_factory=list)

    # ==================== Lookups ====================

    def active(self):
        return [p for p in self.owned if p.status == ProductStatus.ACTIVE]

    def find(self, product_id):
        for p in self.owned + self.in_development:
            if p.id == product_id:
                return p
        return None

    def _find_owned(self, product_id):
        for p in self.owned:
            if p.id == product_id:
                return p
        return None

    def _find_developing(self, product_id):
        for p in self.in_development:
            if p.id == product_id:
                return p
        return None

    # ==================== Development ====================

    def start_development(self, type_key, name, rng, allocation=None, on=None):
        type_key = ProductTypeKey(type_key) if not isinstance(type_key, ProductTypeKey) else type_key
        if allocation is None:
            allocation = ResourceAllocation()
        elif isinstance(allocation, dict):
            allocation = ResourceAllocation.from_dict(allocation)
        product = Product(
            id=new_id(rng),
            type=type_key,
            name=name,
            status=ProductStatus.IN_DEVELOPMENT,
            resource_allocation=allocation,
            development_start=on,
        )
        self.in_development.append(product)
        return product

    def update_resource_allocation(self, product_id, allocation):
        product = self._find_developing(product_id)
        if product is None:
            return False
        if isinstance(allocation, dict):
            allocation = ResourceAllocation.from_dict(allocation)
        product.resource_allocation = allocation
        return True

    def add_development_progress(self, product_id, points):
        product = self._find_developing(product_id)
        if product is None:
            return False
        product.development_progress = min(100.0, product.development_progress + max(0.0, points))
        if product.development_progress >= 100.0:
            product.status = ProductStatus.READY_TO_LAUNCH
        return True

    def launch_product(self, product_id, on=None):
        """Move a finished product to the owned list; returns it, or None if not launchable"""
        product = self._find_developing(product_id)
        if product is None or product.development_progress < 100.0:
            return None

        allocation = (product.resource_allocation or ResourceAllocation()).normalized()
        product.resource_allocation = allocation
        product.set_quality(launch_quality(allocation, product.type))
        product.status = ProductStatus.ACTIVE
        product.launch_date = on
        product.last_update = on
        product.users = 0
        product.revenue = 0.0
        product.market_share = 0.0
        product.history = []

        self.in_development.remove(product)
        self.owned.append(product)
        logger.info("Launched %s at quality %.1f", product.name, product.quality)
        return product

    # ==================== Live products ====================

    def update_product(self, product_id, kind, on=None):
        product = self._find_owned(product_id)
        if product is None or kind not in UPDATE_QUALITY_GAIN:
            return False
        product.set_quality(product.quality + UPDATE_QUALITY_GAIN[kind])
        product.last_update = on
        return True

    def discontinue_product(self, product_id):
        product = self._find_owned(product_id)
        if product is None:
            return False
        product.status = ProductStatus.DISCONTINUED
        product.users = 0
        product.revenue = 0.0
        product.market_share = 0.0
        return True

    def acquire_product(self, source, ledger, rng, source_name="", on=None):
        """Buy a copy of a rival product at acquisition_price(); refused when unaffordable"""
        cost = acquisition_price(source)
        if not ledger.spend(cost):
            return None
        product = Product(
            id=new_id(rng),
            type=source.type,
            name=source.name,
            quality=source.quality,
            users=source.users,
            status=ProductStatus.ACTIVE,
            last_update=on,
            launch_date=on,
        )
        self.owned.append(product)
        self.acquisitions.append(ProductAcquisition(product.id, source_name, cost, on))
        return product
