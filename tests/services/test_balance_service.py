import pytest
from bson import ObjectId

from billsplit.models.friend import Friend
from billsplit.services.balance_service import (
    BalanceService,
    compute_balances,
    compute_payment_totals,
)


@pytest.fixture
def friends(ids):
    return [
        Friend(id=ids["bob"], name="Bob"),
        Friend(id=ids["carol"], name="Carol", email="carol@example.com"),
    ]


def test_user_paid_friends_owe_their_share(make_bill, friends, ids):
    """Alice paid 90 for three: Bob and Carol each owe 30."""
    bill = make_bill(amount=90)

    balances = compute_balances([bill], friends, ids["alice"])

    assert set(balances) == {ids["bob"], ids["carol"]}
    assert balances[ids["bob"]].owes == pytest.approx(30)
    assert balances[ids["bob"]].owed == 0
    assert balances[ids["bob"]].net_balance == pytest.approx(30)
    assert balances[ids["bob"]].friend_name == "Bob"


def test_paid_participant_is_excluded(make_bill, friends, ids):
    bill = make_bill(paid_status={ids["alice"]: True, ids["bob"]: True, ids["carol"]: False})

    balances = compute_balances([bill], friends, ids["alice"])

    assert ids["bob"] not in balances
    assert balances[ids["carol"]].owes == pytest.approx(30)


def test_friend_paid_user_owes_share(make_bill, friends, ids):
    """Bob paid 50 for Alice and Bob: Alice owes Bob 25."""
    bill = make_bill(
        amount=50,
        paid_by=ids["bob"],
        paid_by_name="Bobby",
        split_among=[ids["alice"], ids["bob"]],
    )

    balances = compute_balances([bill], friends, ids["alice"])

    assert balances[ids["bob"]].owed == pytest.approx(25)
    assert balances[ids["bob"]].net_balance == pytest.approx(-25)
    # the payer entry is named from the bill's cached payer name
    assert balances[ids["bob"]].friend_name == "Bobby"


def test_confirmed_payment_clears_owed(make_bill, friends, ids):
    bill = make_bill(
        amount=50,
        paid_by=ids["bob"],
        split_among=[ids["alice"], ids["bob"]],
    )
    assert compute_balances([bill], friends, ids["alice"])[ids["bob"]].owed == pytest.approx(25)

    confirmed = bill.model_copy(update={
        "paid_status": {ids["alice"]: True, ids["bob"]: True},
        "pending_status": {ids["alice"]: False, ids["bob"]: False},
    })

    assert compute_balances([confirmed], friends, ids["alice"]) == {}


def test_pending_payment_still_counts_as_owed(make_bill, friends, ids):
    bill = make_bill(
        amount=50,
        paid_by=ids["bob"],
        split_among=[ids["alice"], ids["bob"], ids["carol"]],
        pending_status={ids["alice"]: True},
    )

    balances = compute_balances([bill], friends, ids["alice"])

    assert balances[ids["bob"]].owed == pytest.approx(50 / 3)


def test_user_already_paid_keeps_zero_entry_for_payer(make_bill, friends, ids):
    """Bill still open for Carol: Alice has paid, so she owes Bob nothing."""
    bill = make_bill(
        paid_by=ids["bob"],
        paid_status={ids["alice"]: True, ids["bob"]: True, ids["carol"]: False},
    )

    balances = compute_balances([bill], friends, ids["alice"])

    assert balances[ids["bob"]].owed == 0
    assert balances[ids["bob"]].net_balance == 0


def test_completed_bills_are_ignored(make_bill, friends, ids):
    bill = make_bill(paid_status={ids["alice"]: True, ids["bob"]: True, ids["carol"]: True})
    assert compute_balances([bill], friends, ids["alice"]) == {}


def test_bills_without_user_stake_are_ignored(make_bill, friends, ids):
    other = make_bill(paid_by=ids["bob"], split_among=[ids["bob"], ids["carol"]])
    # paid by the user but the user is not in the split
    not_split = make_bill(split_among=[ids["bob"], ids["carol"]])

    assert compute_balances([other, not_split], friends, ids["alice"]) == {}


def test_payer_only_bill_contributes_nothing(make_bill, friends, ids):
    bill = make_bill(split_among=[ids["alice"]])
    assert compute_balances([bill], friends, ids["alice"]) == {}


def test_friend_on_both_sides_nets_out(make_bill, friends, ids):
    """Bob owes Alice 30 on one bill while Alice owes Bob 20 on another."""
    alice_paid = make_bill(amount=60, split_among=[ids["alice"], ids["bob"]])
    bob_paid = make_bill(
        amount=40,
        paid_by=ids["bob"],
        split_among=[ids["alice"], ids["bob"]],
    )

    balances = compute_balances([alice_paid, bob_paid], friends, ids["alice"])

    bob = balances[ids["bob"]]
    assert bob.owes == pytest.approx(30)
    assert bob.owed == pytest.approx(20)
    assert bob.net_balance == pytest.approx(10)


def test_custom_split_balances_use_item_shares(make_bill, friends, ids):
    bill = make_bill(
        split_type="custom",
        split_among=[ids["alice"], ids["bob"]],
        itemized_amounts={ids["alice"]: 60, ids["bob"]: 40},
        tax_percentage=10,
        tips_percentage=5,
    )

    balances = compute_balances([bill], friends, ids["alice"])

    assert balances[ids["bob"]].owes == pytest.approx(46)


def test_unknown_names_fall_back(make_bill, ids):
    stranger = "507f1f77bcf86cd7994390ff"
    user_paid = make_bill(split_among=[ids["alice"], stranger])
    stranger_paid = make_bill(
        paid_by=ids["carol"],
        paid_by_name=None,
        split_among=[ids["alice"], ids["carol"]],
    )

    balances = compute_balances([user_paid, stranger_paid], [], ids["alice"])

    assert balances[stranger].friend_name == "Unknown Friend"
    assert balances[ids["carol"]].friend_name == "Unknown"


@pytest.mark.parametrize("user_id", [None, ""])
def test_no_user_no_balances(make_bill, friends, user_id):
    assert compute_balances([make_bill()], friends, user_id) == {}


def test_payment_totals_bucket_user_shares(make_bill, ids):
    unpaid = make_bill(amount=30, paid_by=ids["bob"])
    pending = make_bill(amount=60, paid_by=ids["bob"], pending_status={ids["alice"]: True})
    paid_by_user = make_bill(amount=90)
    not_involved = make_bill(paid_by=ids["bob"], split_among=[ids["bob"], ids["carol"]])

    totals = compute_payment_totals([unpaid, pending, paid_by_user, not_involved], ids["alice"])

    assert totals.total_paid == pytest.approx(30)
    assert totals.total_pending == pytest.approx(20)
    # pending is unconfirmed and stays in the unpaid total
    assert totals.total_unpaid == pytest.approx(10 + 20)


@pytest.mark.asyncio
async def test_get_balances_reads_bills_and_friends(mock_db, make_bill, ids):
    bob_paid = make_bill(
        amount=40,
        paid_by=ids["bob"],
        split_among=[ids["alice"], ids["bob"]],
    )
    alice_paid = make_bill(amount=90)
    bill_docs = []
    for bill in (bob_paid, alice_paid):
        doc = bill.model_dump(exclude={"id"})
        doc["_id"] = ObjectId()
        bill_docs.append(doc)

    mock_db["bills"].find.return_value.to_list.return_value = bill_docs
    mock_db["friends"].find.return_value.to_list.return_value = [
        {"owner_id": ids["alice"], "friend_id": ids["bob"], "name": "Bob"},
        {"owner_id": ids["alice"], "friend_id": ids["carol"], "name": "Carol"},
    ]

    balances = await BalanceService.get_balances(mock_db, ids["alice"])

    # largest absolute net balance first
    assert [b.friend_id for b in balances] == [ids["carol"], ids["bob"]]
    assert balances[0].friend_name == "Carol"
    assert balances[0].net_balance == pytest.approx(30)
    assert balances[1].net_balance == pytest.approx(30 - 20)

    query = mock_db["bills"].find.call_args[0][0]
    assert {"paid_by": ids["alice"]} in query["$or"]
    assert {"split_among": ids["alice"]} in query["$or"]


@pytest.mark.asyncio
async def test_get_payment_totals(mock_db, make_bill, ids):
    doc = make_bill(amount=50, paid_by=ids["bob"]).model_dump(exclude={"id"})
    doc["_id"] = ObjectId()
    mock_db["bills"].find.return_value.to_list.return_value = [doc]

    totals = await BalanceService.get_payment_totals(mock_db, ids["alice"])

    assert totals.total_unpaid == pytest.approx(50 / 3)
    assert totals.total_paid == 0
