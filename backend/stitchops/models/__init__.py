"""Database models"""
from stitchops.models.customer import Customer
from stitchops.models.sales_order import SalesOrder, SalesOrderItem
from stitchops.models.work_order import WorkOrder, ProductionStageHistory
from stitchops.models.quality_inspection import QualityInspection
from stitchops.models.sample_request import (
    SampleRequest, SampleMaterialRequirement, SampleProcessStage, SampleStatusHistory
)

__all__ = [
    # Customers
    "Customer",
    # Sales
    "SalesOrder",
    "SalesOrderItem",
    # Production
    "WorkOrder",
    "ProductionStageHistory",
    # Quality
    "QualityInspection",
    # R&D Samples
    "SampleRequest",
    "SampleMaterialRequirement",
    "SampleProcessStage",
    "SampleStatusHistory",
]
