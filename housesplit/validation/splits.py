"""
Split construction for new expenses.

Shares are always whole cents and always add up to the expense total:
an equal split rounds each share to the cent and hands the leftover
(positive or negative) to the first participant.

    100.00 / 3 -> 33.34, 33.33, 33.33
    200.00 / 3 -> 66.66, 66.67, 66.67
"""

from typing import Mapping, Sequence

from housesplit.balances.money import CENT, ZERO, Amount, round_money, to_decimal


class SplitCalculationError(ValueError):
    """The requested split cannot be built from the given amounts."""

    def __init__(self, message: str, issue_type: str = "split_mismatch"):
        super().__init__(message)
        self.issue_type = issue_type


def build_equal_splits(
    amount_total: Amount,
    participant_ids: Sequence[str],
) -> dict:
    """
    Divide an amount equally between participants.

    A participant listed more than once gets a single share.

    Returns:
        {member_id: share}, in participant order

    Raises:
        SplitCalculationError: If there are no participants
    """
    participant_ids = list(dict.fromkeys(participant_ids))
    if not participant_ids:
        raise SplitCalculationError("Select at least one participant")

    total = round_money(amount_total)
    count = len(participant_ids)
    per_person = round_money(total / count)
    remainder = total - per_person * count

    return {
        member_id: per_person + remainder if idx == 0 else per_person
        for idx, member_id in enumerate(participant_ids)
    }


def build_custom_splits(
    amount_total: Amount,
    participant_ids: Sequence[str],
    custom_amounts: Mapping[str, Amount],
) -> dict:
    """
    Use the amounts entered per participant.

    Participants without an entered amount owe nothing. A participant
    listed more than once gets a single share.

    Raises:
        SplitCalculationError: If there are no participants, an amount is
            negative or has fractions of a cent, or the amounts don't add up
            to the total within a cent
    """
    participant_ids = list(dict.fromkeys(participant_ids))
    if not participant_ids:
        raise SplitCalculationError("Select at least one participant")

    shares = {}
    for member_id in participant_ids:
        value = to_decimal(custom_amounts.get(member_id, ZERO))
        if value < 0:
            raise SplitCalculationError(f"Invalid amount for member {member_id}: {value}")
        if value != value.quantize(CENT):
            raise SplitCalculationError(
                f"Amount for member {member_id} cannot have fractions of a cent: {value}",
                issue_type="too_precise",
            )
        shares[member_id] = value.quantize(CENT)

    total = to_decimal(amount_total)
    entered = sum(shares.values(), ZERO)
    if abs(entered - total) > CENT:
        raise SplitCalculationError(
            f"Custom amounts don't add up: total {entered:.2f}, expected {total:.2f}"
        )

    return shares
