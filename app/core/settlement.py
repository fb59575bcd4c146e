"""
Debt settlement engine.

Pure functions, no I/O and no shared state: every call builds its own
balance map from the (users, expenses) snapshot it is given.

Amount policy:
    * balances are accrued exactly (fractions), so A/k never drifts
    * exact balances are apportioned to whole cents with the largest
      remainder method; the cents sum to exactly zero and each user is
      off by less than one cent
    * transfers are therefore whole cents, emitted as Decimal("x.yy")
      quantized ROUND_HALF_UP
"""
import logging
from decimal import Decimal
from fractions import Fraction
from typing import Dict, Iterable, List, Sequence, Tuple

from app.core.exceptions import InvalidExpenseError
from app.core.utils import from_cents, to_cents, to_decimal
from app.schemas.settlements import Expense, Settlement, User

logger = logging.getLogger(__name__)

EPSILON = Decimal("0.01")


def validate_snapshot(users: Sequence[User], expenses: Iterable[Expense]) -> None:
    """
    Reject expenses that would produce a silently wrong balance.

    Raises:
        InvalidExpenseError: negative amount, empty participant set, or a
            payer / participant missing from `users`.
    """
    known = {u.id for u in users}

    for exp in expenses:
        if exp.amount < 0:
            raise InvalidExpenseError("amount must be non-negative", exp.id)
        if not exp.participant_ids:
            raise InvalidExpenseError("no participants", exp.id)
        if exp.payer_id not in known:
            raise InvalidExpenseError(f"unknown payer {exp.payer_id!r}", exp.id)

        unknown = [p for p in exp.participant_ids if p not in known]
        if unknown:
            raise InvalidExpenseError(
                f"unknown participant(s) {', '.join(map(repr, unknown))}", exp.id
            )


def _accrue(users: Sequence[User], expenses: Iterable[Expense]) -> Dict[str, Fraction]:
    balances: Dict[str, Fraction] = {u.id: Fraction(0) for u in users}

    for exp in expenses:
        amount = Fraction(to_decimal(exp.amount))
        if amount == 0:
            continue

        # order-preserving dedupe
        participants = list(dict.fromkeys(exp.participant_ids))
        share = amount / len(participants)

        # paying and owing a share are independent contributions
        balances[exp.payer_id] += amount
        for pid in participants:
            balances[pid] -= share

    return balances


def _apportion_cents(exact: Dict[str, Fraction]) -> Dict[str, int]:
    """
    Largest remainder rounding of exact balances to whole cents.

    Every balance is floored to a cent, then the cents lost by flooring are
    handed back one at a time to the users with the largest discarded
    fraction (ties: smallest user id) until the total is zero again.
    """
    cents: Dict[str, int] = {}
    remainders: List[Tuple[Fraction, str]] = []

    for uid, bal in exact.items():
        scaled = bal * 100
        floor = scaled.numerator // scaled.denominator
        cents[uid] = floor
        remainders.append((scaled - floor, uid))

    missing = -sum(cents.values())
    remainders.sort(key=lambda r: (-r[0], r[1]))

    for _, uid in remainders[:missing]:
        cents[uid] += 1

    return cents


def compute_net_balances(
    users: Sequence[User],
    expenses: Iterable[Expense],
) -> Dict[str, Decimal]:
    """
    Returns:
        {
            user_id: net_balance (Decimal, 2 places)
        }

    net_balance = total_paid - total_share; positive means the user is owed
    money. Values sum to exactly zero.
    """
    expenses = list(expenses)
    validate_snapshot(users, expenses)

    cents = _apportion_cents(_accrue(users, expenses))
    return {uid: from_cents(c) for uid, c in cents.items()}


def simplify_debts(
    net_map: Dict[str, Decimal],
    epsilon: Decimal = EPSILON,
) -> List[Tuple[str, str, Decimal]]:
    """
    Greedy "largest debtor pays largest creditor" matching.

    Balances within `epsilon` of zero are treated as settled, unless the
    cents they hold add up to more than `epsilon` on one side; then they
    join the matching so nobody is left holding the sum of them. Matching
    runs in whole cents until one side is exhausted, so after the transfers
    every user is within `epsilon` of zero.

    Produces at most n - 1 transfers for n users with a nonzero balance;
    not guaranteed to be the minimum number of transfers (that problem is
    NP-hard).

    Returns:
        [(debtor_id, creditor_id, amount), ...] in emission order.
    """
    eps = to_cents(to_decimal(epsilon))

    debtors: List[List] = []
    creditors: List[List] = []
    small: List[Tuple[str, int]] = []

    for uid, bal in net_map.items():
        c = to_cents(to_decimal(bal))
        if c < -eps:
            debtors.append([uid, -c])
        elif c > eps:
            creditors.append([uid, c])
        elif c != 0:
            small.append((uid, c))

    imbalance = sum(d[1] for d in debtors) - sum(c[1] for c in creditors)
    if abs(imbalance) > eps:
        for uid, c in small:
            if c < 0:
                debtors.append([uid, -c])
            else:
                creditors.append([uid, c])

    # magnitude descending, then id, so the plan never depends on dict order
    debtors.sort(key=lambda x: (-x[1], x[0]))
    creditors.sort(key=lambda x: (-x[1], x[0]))

    transfers: List[Tuple[str, str, Decimal]] = []
    i = 0
    j = 0

    while i < len(debtors) and j < len(creditors):
        debt_id, debt_amt = debtors[i]
        cred_id, cred_amt = creditors[j]

        settle = min(debt_amt, cred_amt)
        transfers.append((debt_id, cred_id, from_cents(settle)))

        debtors[i][1] -= settle
        creditors[j][1] -= settle

        if debtors[i][1] == 0:
            i += 1
        if creditors[j][1] == 0:
            j += 1

    return transfers


def is_settled(net_map: Dict[str, Decimal], tolerance: Decimal = EPSILON) -> bool:
    """
    A group is settled if abs(net_balance) <= tolerance for every member.
    """
    tolerance = to_decimal(tolerance)
    return all(abs(to_decimal(bal)) <= tolerance for bal in net_map.values())


def compute_settlements(
    users: Sequence[User],
    expenses: Iterable[Expense],
    epsilon: Decimal = EPSILON,
) -> List[Settlement]:
    """
    Who pays whom, and how much, to zero every balance in the snapshot.

    Fewer than two users or no expenses gives an empty plan. Output is
    ordered largest debtor first and is identical for identical input.

    Raises:
        InvalidExpenseError: see `validate_snapshot`.
    """
    expenses = list(expenses)
    if len(users) < 2 or not expenses:
        return []

    names = {u.id: u.name for u in users}
    net = compute_net_balances(users, expenses)
    transfers = simplify_debts(net, epsilon)

    logger.debug(
        "Settled %d users / %d expenses with %d transfers",
        len(users), len(expenses), len(transfers)
    )

    return [
        Settlement(
            from_id=debt_id,
            from_name=names.get(debt_id),
            to_id=cred_id,
            to_name=names.get(cred_id),
            amount=amount,
        )
        for debt_id, cred_id, amount in transfers
    ]
