# auctions/events.py
from dataclasses import dataclass
from typing import ClassVar, Optional


def _user_summary(user):
    if user is None:
        return None
    return {'id': user.id, 'name': user.name, 'company': user.company}


@dataclass(frozen=True)
class AuctionEvent:
    """A committed state change, handed to the event sinks after commit."""
    auction: object
    name: ClassVar[str] = 'AuctionEvent'

    def payload(self):
        from .serializers import AuctionSnapshotSerializer
        return {'auction': AuctionSnapshotSerializer(self.auction).data}

    def recipients(self):
        """Users who get a personal notification for this event."""
        return []


@dataclass(frozen=True)
class BidPlaced(AuctionEvent):
    name: ClassVar[str] = 'BidPlaced'

    def recipients(self):
        return [self.auction.creator]


@dataclass(frozen=True)
class StatusChanged(AuctionEvent):
    old_status: str = ''
    new_status: str = ''
    name: ClassVar[str] = 'StatusChanged'

    def payload(self):
        data = super().payload()
        data.update(old_status=self.old_status, new_status=self.new_status)
        return data

    def recipients(self):
        return [self.auction.creator]


@dataclass(frozen=True)
class WinnerSelected(AuctionEvent):
    winner: object = None
    selected_by: object = None
    name: ClassVar[str] = 'WinnerSelected'

    def payload(self):
        data = super().payload()
        data.update(winner=_user_summary(self.winner), selected_by=_user_summary(self.selected_by))
        return data

    def recipients(self):
        return [self.winner]


@dataclass(frozen=True)
class WinnerChanged(AuctionEvent):
    previous_winner: object = None
    new_winner: object = None
    reason: Optional[str] = None
    name: ClassVar[str] = 'WinnerChanged'

    def payload(self):
        data = super().payload()
        data.update(
            previous_winner=_user_summary(self.previous_winner),
            new_winner=_user_summary(self.new_winner),
            reason=self.reason,
        )
        return data

    def recipients(self):
        users = [self.new_winner]
        if self.previous_winner is not None and self.previous_winner.id != self.new_winner.id:
            users.append(self.previous_winner)
        return users
