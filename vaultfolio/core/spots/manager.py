"""Spot (purchase location) management."""

import logging
from typing import Optional

from sqlmodel import select

from vaultfolio.core.exceptions import NotFoundError
from vaultfolio.core.portfolio.models import Holding
from vaultfolio.core.spots.matching import SpotPurchase, purchases_for_spot
from vaultfolio.db.database import get_session
from vaultfolio.db.models import Spot

logger = logging.getLogger(__name__)

SPOT_TYPES = {
    "store": "Store",
    "online": "Online",
    "flea_market": "Flea market",
}

MAX_NAME_LENGTH = 100
MAX_NOTE_LENGTH = 500


def _validate(name: str, spot_type: str, rating: int, note: Optional[str]) -> str:
    clean = (name or "").strip()
    if not clean:
        raise ValueError("Spot name is required")
    if len(clean) > MAX_NAME_LENGTH:
        raise ValueError(f"Spot name must be at most {MAX_NAME_LENGTH} characters")
    if spot_type not in SPOT_TYPES:
        raise ValueError(f"Invalid spot type: {spot_type}. Use one of {', '.join(SPOT_TYPES)}")
    if not 1 <= rating <= 5:
        raise ValueError("Rating must be between 1 and 5")
    if note and len(note) > MAX_NOTE_LENGTH:
        raise ValueError(f"Note must be at most {MAX_NOTE_LENGTH} characters")
    return clean


class SpotManager:
    """CRUD for spots plus lookup of the purchases made there."""

    def add_spot(
        self,
        name: str,
        spot_type: str = "store",
        rating: int = 3,
        note: Optional[str] = None,
    ) -> Spot:
        """Create a spot."""
        clean = _validate(name, spot_type, rating, note)
        with get_session() as session:
            spot = Spot(name=clean, spot_type=spot_type, rating=rating, note=note or None)
            session.add(spot)
            session.flush()
            session.refresh(spot)
            session.expunge(spot)
        logger.info(f"Added spot {spot.name} ({spot.id})")
        return spot

    def update_spot(
        self,
        spot_id: int,
        name: Optional[str] = None,
        spot_type: Optional[str] = None,
        rating: Optional[int] = None,
        note: Optional[str] = None,
    ) -> Spot:
        """Edit a spot; omitted fields keep their value."""
        spot = self.get_spot(spot_id)
        new_name = _validate(
            name if name is not None else spot.name,
            spot_type or spot.spot_type,
            rating if rating is not None else spot.rating,
            note if note is not None else spot.note,
        )
        with get_session() as session:
            row = session.get(Spot, spot_id)
            row.name = new_name
            row.spot_type = spot_type or row.spot_type
            row.rating = rating if rating is not None else row.rating
            if note is not None:
                row.note = note or None
            session.flush()
            session.refresh(row)
            session.expunge(row)
            return row

    def get_spot(self, spot_id: int) -> Spot:
        """
        Get a spot by id.

        Raises:
            NotFoundError: Unknown spot id
        """
        with get_session() as session:
            spot = session.get(Spot, spot_id)
            if spot is not None:
                session.expunge(spot)
        if spot is None:
            raise NotFoundError("Spot", spot_id)
        return spot

    def list_spots(self) -> list[Spot]:
        """All spots, best rated first."""
        with get_session() as session:
            spots = list(
                session.exec(select(Spot).order_by(Spot.rating.desc(), Spot.name)).all()
            )
            for spot in spots:
                session.expunge(spot)
            return spots

    def remove_spot(self, spot_id: int) -> bool:
        """Delete a spot. Returns False if it did not exist."""
        with get_session() as session:
            spot = session.get(Spot, spot_id)
            if spot is None:
                return False
            session.delete(spot)
        logger.info(f"Removed spot {spot_id}")
        return True

    def get_purchases(self, spot: Spot, holdings: list[Holding]) -> list[SpotPurchase]:
        """Purchases whose source matches the spot name, most recent first."""
        return purchases_for_spot(spot.name, holdings)
