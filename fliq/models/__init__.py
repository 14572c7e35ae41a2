# Import every model so Base.metadata is complete (Alembic autogenerate, create_all in tests).
from fliq.models.user import User  # noqa: F401
from fliq.models.provider import Provider  # noqa: F401
from fliq.models.service import Service  # noqa: F401
from fliq.models.booking import Booking  # noqa: F401
from fliq.models.dispute import Dispute  # noqa: F401
from fliq.models.activity_log import ActivityLog  # noqa: F401
from fliq.models.email_log import EmailLog  # noqa: F401
