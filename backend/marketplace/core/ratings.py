"""Rating Submission — append a rating and recompute the target's score.

Invariants:
    - stars must be an integer in 1..5, else InvalidStarsError
    - score = mean of ALL ratings ever targeting the user, rounded half-up to 1 decimal
    - reviews = number of those ratings
    - No uniqueness: the same rater may rate the same target repeatedly
"""

from dataclasses import dataclass

from marketplace.core.audit_trail import append_audit
from marketplace.core.domain_types import AuditAction
from marketplace.core.errors import InvalidStarsError, ResourceNotFoundError
from marketplace.core.ledger_types import LedgerSnapshot, Rating, Stamp
from marketplace.core.trust_score import round_half_up


MIN_STARS: int = 1
MAX_STARS: int = 5


@dataclass(frozen=True)
class RatingSummary:
    score: float
    reviews: int


def validate_stars(stars: object) -> int:
    if isinstance(stars, bool) or not isinstance(stars, int):
        raise InvalidStarsError(stars)
    if not MIN_STARS <= stars <= MAX_STARS:
        raise InvalidStarsError(stars)
    return stars


def submit_rating(
    snapshot: LedgerSnapshot,
    target_user_id: str,
    by_user_id: str,
    stars: int,
    comment: str,
    stamp: Stamp,
) -> RatingSummary:
    stars = validate_stars(stars)
    target = snapshot.find_user(target_user_id)
    if target is None:
        raise ResourceNotFoundError("User", target_user_id)

    snapshot.ratings.append(Rating(
        id=stamp.new_id(8),
        target_user_id=target_user_id,
        by_user_id=by_user_id,
        stars=stars,
        comment=comment,
        at=stamp.at,
    ))
    received = [r.stars for r in snapshot.ratings if r.target_user_id == target_user_id]
    target.score = round_half_up(sum(received) / len(received), 1)
    target.reviews = len(received)

    append_audit(snapshot, AuditAction.RATE, target_user_id, by_user_id, stamp)
    return RatingSummary(score=target.score, reviews=target.reviews)
