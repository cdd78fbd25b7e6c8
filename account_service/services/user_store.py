"""Persistence gateway for users, provider links and login statistics."""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from account_service.errors import NotFound
from account_service.models import DailyStatistic, ProviderLink, User


class UserStore:
    """Row-level operations the account services need from the database.

    Every mutating call commits on its own unless it runs inside
    :meth:`atomic`, in which case changes are only flushed and the block
    commits (or rolls back) as a whole.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self._atomic_depth = 0

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Group several mutations into one transaction."""
        self._atomic_depth += 1
        try:
            yield
        except Exception:
            self._atomic_depth -= 1
            self.db.rollback()
            raise
        self._atomic_depth -= 1
        if self._atomic_depth == 0:
            self._commit()

    def _save(self) -> None:
        if self._atomic_depth:
            self.db.flush()
        else:
            self._commit()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # Lookups

    def find_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email).first()

    def find_by_id(self, user_id: str) -> User | None:
        return self.db.get(User, user_id)

    def find_by_refresh_token(self, token: str) -> User | None:
        if not token:
            return None
        return self.db.query(User).filter(User.refresh_token == token).first()

    def find_by_verify_token(self, token: str) -> User | None:
        if not token:
            return None
        return self.db.query(User).filter(User.email_verify_token == token).first()

    def find_provider_links(self, user_id: str) -> list[ProviderLink]:
        return self.db.query(ProviderLink).filter(ProviderLink.user_id == user_id).all()

    def find_provider_link(self, provider: str, provider_id: str) -> ProviderLink | None:
        return (
            self.db.query(ProviderLink)
            .filter(ProviderLink.oauth_provider == provider, ProviderLink.oauth_provider_id == provider_id)
            .first()
        )

    # Mutations

    def create(self, **fields) -> User:
        """Insert a new user."""
        user = User(**fields)
        self.db.add(user)
        self._save()
        if not self._atomic_depth:
            self.db.refresh(user)
        return user

    def update(self, user_id: str, **fields) -> User:
        """Overwrite the given columns on a user. Raises NotFound if the row is gone."""
        user = self.find_by_id(user_id)
        if user is None:
            raise NotFound()
        for name, value in fields.items():
            setattr(user, name, value)
        self._save()
        return user

    def create_provider_link(self, provider: str, provider_id: str, user_id: str) -> ProviderLink:
        link = ProviderLink(oauth_provider=provider, oauth_provider_id=provider_id, user_id=user_id)
        self.db.add(link)
        self._save()
        return link

    def increment_login_counters(self, user_id: str, day: date) -> None:
        """Add one login to the user and to the statistic row for ``day``."""
        self.db.execute(update(User).where(User.id == user_id).values(login_times=User.login_times + 1))
        if not self._bump_daily_statistic(day):
            try:
                with self.db.begin_nested():
                    self.db.add(DailyStatistic(date=day, login_times=1))
            except IntegrityError:
                # Another worker created today's row first.
                self._bump_daily_statistic(day)
        self._save()

    def _bump_daily_statistic(self, day: date) -> bool:
        result = self.db.execute(
            update(DailyStatistic)
            .where(DailyStatistic.date == day)
            .values(login_times=DailyStatistic.login_times + 1)
        )
        return result.rowcount > 0

    # Aggregates

    def count_users(self) -> int:
        return self.db.scalar(select(func.count(User.id))) or 0

    def daily_login_times(self, day: date) -> int:
        value = self.db.scalar(select(DailyStatistic.login_times).where(DailyStatistic.date == day))
        return value or 0

    def average_login_times(self, start: date, end: date) -> float:
        """Mean of recorded daily login counts between two dates, inclusive."""
        value = self.db.scalar(
            select(func.avg(DailyStatistic.login_times)).where(
                DailyStatistic.date >= start, DailyStatistic.date <= end
            )
        )
        return float(value or 0)
