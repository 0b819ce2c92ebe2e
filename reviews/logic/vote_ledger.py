"""
Vote Ledger

Per-review up/down vote sets with toggle semantics. Each action is a
transition over two disjoint sets, so a voter is always in at most one.
"""

from typing import Optional, Union

from .constants import DOWNVOTES_FIELD, UPVOTES_FIELD, VoteAction
from .contracts import VoteDelta, VoteSets
from .errors import AuthenticationError, ValidationError


def _require_voter(voter: Optional[str]) -> str:
    if voter is None or not str(voter).strip():
        raise AuthenticationError("You must be logged in to vote")
    return voter


def _coerce_action(action: Union[VoteAction, str]) -> VoteAction:
    try:
        return VoteAction(action)
    except ValueError:
        raise ValidationError(f"Unknown vote action: {action!r}") from None


def apply_vote(votes: VoteSets, voter: Optional[str], action: Union[VoteAction, str]) -> VoteSets:
    """
    Apply one vote action to a review's vote sets.

    - upvote:   leave downvotes, join upvotes
    - downvote: leave upvotes, join downvotes
    - remove:   leave whichever set holds the voter

    Applying the same action twice gives the same state as applying it once.

    Args:
        votes: Current vote sets
        voter: Acting user id
        action: VoteAction or its string value

    Returns:
        New VoteSets; the input is not modified
    """
    voter = _require_voter(voter)
    action = _coerce_action(action)

    upvotes = votes.upvotes - {voter}
    downvotes = votes.downvotes - {voter}

    if action == VoteAction.UPVOTE:
        upvotes = upvotes | {voter}
    elif action == VoteAction.DOWNVOTE:
        downvotes = downvotes | {voter}

    return VoteSets(upvotes=upvotes, downvotes=downvotes)


def vote_delta(voter: Optional[str], action: Union[VoteAction, str]) -> VoteDelta:
    """
    The single-document update that performs `action` in the store:
    add the voter to at most one set, pull it from the other(s).
    """
    voter = _require_voter(voter)
    action = _coerce_action(action)

    if action == VoteAction.UPVOTE:
        return VoteDelta(add={UPVOTES_FIELD: [voter]}, remove={DOWNVOTES_FIELD: [voter]})
    if action == VoteAction.DOWNVOTE:
        return VoteDelta(add={DOWNVOTES_FIELD: [voter]}, remove={UPVOTES_FIELD: [voter]})
    return VoteDelta(remove={UPVOTES_FIELD: [voter], DOWNVOTES_FIELD: [voter]})


def score(votes: VoteSets) -> int:
    """Net score of a review: upvotes minus downvotes."""
    return len(votes.upvotes) - len(votes.downvotes)
