"""ORM models. Importing this package registers every table with ``Base.metadata``."""

from account_service.models.daily_statistic import DailyStatistic
from account_service.models.provider_link import ProviderLink
from account_service.models.user import User

__all__ = ["DailyStatistic", "ProviderLink", "User"]
