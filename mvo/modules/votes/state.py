"""Vote button state machine.

A user's selection on one idea is three flags: ``use``, ``dislike`` and
``pay``. A single like click toggles ``use``, or clears both positive votes
when ``pay`` is set. A second like click inside the double-click window
upgrades the selection to ``pay`` while keeping ``use``. Dislike toggles on
its own.
"""
from dataclasses import dataclass, replace

from mvo.modules.votes.schemas import UserVotes, VoteAction, VoteType


@dataclass(frozen=True)
class VoteSelection:
    use: bool = False
    dislike: bool = False
    pay: bool = False

    def has(self, vote_type: VoteType) -> bool:
        return getattr(self, VoteType(vote_type).value)

    def as_user_votes(self) -> UserVotes:
        return UserVotes(use=self.use, dislike=self.dislike, pay=self.pay)

    @classmethod
    def from_user_votes(cls, votes: UserVotes) -> "VoteSelection":
        return cls(use=votes.use, dislike=votes.dislike, pay=votes.pay)


@dataclass(frozen=True)
class VoteCounts:
    use: int = 0
    dislike: int = 0
    pay: int = 0

    def adjusted(self, before: VoteSelection, after: VoteSelection) -> "VoteCounts":
        """Move counts by the difference between two selections, never below zero"""
        values = {}
        for vote_type in VoteType:
            delta = int(after.has(vote_type)) - int(before.has(vote_type))
            values[vote_type.value] = max(0, getattr(self, vote_type.value) + delta)
        return VoteCounts(**values)


@dataclass(frozen=True)
class VoteState:
    selection: VoteSelection = VoteSelection()
    counts: VoteCounts = VoteCounts()


def next_selection(current: VoteSelection, action: VoteAction, double_click: bool = False) -> VoteSelection:
    if action == VoteAction.DISLIKE:
        return replace(current, dislike=not current.dislike)
    if double_click:
        return replace(current, use=True, pay=True)
    if current.pay:
        return replace(current, use=False, pay=False)
    return replace(current, use=not current.use)


def next_vote_state(current: VoteState, action: VoteAction, double_click: bool = False) -> VoteState:
    selection = next_selection(current.selection, action, double_click)
    return VoteState(
        selection=selection,
        counts=current.counts.adjusted(current.selection, selection),
    )
