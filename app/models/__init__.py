# app/models/__init__.py
from app.db.base import Base  # noqa: F401

from . import compliance_tracking     # noqa: F401
from . import compliance_document     # noqa: F401
from . import compliance_recurring    # noqa: F401
from . import compliance_alert        # noqa: F401
from . import compliance_preferences  # noqa: F401
from . import compliance_history      # noqa: F401
from . import compliance_rule         # noqa: F401
from . import compliance_analytics    # noqa: F401

from .compliance_tracking import TrackingItem  # noqa: F401
from .compliance_document import ComplianceDocument  # noqa: F401
from .compliance_recurring import RecurringObligation  # noqa: F401
from .compliance_alert import ComplianceAlert  # noqa: F401
from .compliance_preferences import CompliancePreferences  # noqa: F401
from .compliance_history import ComplianceHistory  # noqa: F401
from .compliance_rule import ComplianceRule  # noqa: F401
from .compliance_analytics import ComplianceAnalytics  # noqa: F401
