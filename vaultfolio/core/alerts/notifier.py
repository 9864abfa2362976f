"""
Target price alert delivery.

Receives PriceAlert events reported by the valuation engine, records them
in the alert history and logs them. Display is left to the caller (the CLI
prints the returned records).
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import select

from vaultfolio.core.exceptions import NotFoundError
from vaultfolio.core.portfolio.valuation import PriceAlert
from vaultfolio.db.database import get_session
from vaultfolio.db.models import AlertHistory

logger = logging.getLogger(__name__)


class AlertNotifier:
    """
    Records triggered target price alerts.

    Each call to notify() creates exactly one history record.
    """

    def notify(self, alert: PriceAlert) -> AlertHistory:
        """
        Record a triggered alert.

        Args:
            alert: Alert reported by update_current_estimate()

        Returns:
            Created AlertHistory record (detached)
        """
        with get_session() as session:
            record = AlertHistory(
                holding_id=alert.holding_id,
                holding_name=alert.holding_name,
                as_of=alert.as_of,
                target_price=alert.target_price,
                price=alert.price,
                message=alert.message[:500],
            )
            session.add(record)
            session.flush()
            session.refresh(record)
            session.expunge(record)

        logger.warning(f"Target price reached: {alert.message}")
        return record

    def get_history(
        self,
        holding_id: Optional[str] = None,
        unacknowledged_only: bool = False,
        limit: int = 50,
    ) -> list[AlertHistory]:
        """
        Get alert history, most recent first.

        Args:
            holding_id: Restrict to one holding
            unacknowledged_only: Only alerts not yet acknowledged
            limit: Maximum records to return
        """
        with get_session() as session:
            stmt = select(AlertHistory)
            if holding_id:
                stmt = stmt.where(AlertHistory.holding_id == holding_id)
            if unacknowledged_only:
                stmt = stmt.where(AlertHistory.acknowledged == False)  # noqa: E712
            stmt = stmt.order_by(AlertHistory.triggered_at.desc(), AlertHistory.id.desc()).limit(limit)

            records = list(session.exec(stmt).all())
            for record in records:
                session.expunge(record)
            return records

    def acknowledge(self, alert_id: int) -> AlertHistory:
        """
        Mark an alert as acknowledged.

        Raises:
            NotFoundError: Unknown alert id
        """
        with get_session() as session:
            record = session.get(AlertHistory, alert_id)
            if record is None:
                raise NotFoundError("Alert", alert_id)
            if not record.acknowledged:
                record.acknowledged = True
                record.acknowledged_at = datetime.now(timezone.utc)
            session.flush()
            session.refresh(record)
            session.expunge(record)
            return record
