from app.models.audit import AuditAction, AuditLog  # noqa: F401
from app.models.event_store import EventStatus, EventStore  # noqa: F401
from app.models.inventory import (  # noqa: F401
    InventoryUnit,
    InventoryUnitStatus,
    LocationType,
    Material,
    StockArea,
)
from app.models.material_allocation import (  # noqa: F401
    ACTIVE_ALLOCATION_STATUSES,
    AllocationStatus,
    MaterialAllocation,
)
from app.models.material_request import (  # noqa: F401
    MaterialRequest,
    MaterialRequestItem,
    MaterialRequestStatus,
)
from app.models.notification import Notification, NotificationType  # noqa: F401
from app.models.person import Person  # noqa: F401
from app.models.sequence import DocumentSequence  # noqa: F401
