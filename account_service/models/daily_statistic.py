"""Daily login statistic model."""

from sqlalchemy import Column, Date, Integer

from account_service.database import Base


class DailyStatistic(Base):
    """Successful logins per UTC calendar day."""

    __tablename__ = "daily_statistic"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, unique=True, nullable=False, index=True)
    login_times = Column(Integer, nullable=False, default=0)
