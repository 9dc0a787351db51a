import pytest

from yield_dao.core.errors import ProposalClosed, ProposalNotFound
from yield_dao.core.proposal import ProposalStore
from yield_dao.core.stake_ledger import StakeLedger
from yield_dao.core.tally import TallyEngine, tier_for_yield
from yield_dao.models.proposal import ProposalStatus


def make_engine(clock, options=None, duration=3600):
    store = ProposalStore(clock=clock)
    ledger = StakeLedger(store)
    engine = TallyEngine(store, ledger)
    proposal_id = store.create_proposal(
        "Yield strategy",
        "test",
        options or [
            {"name": "EcoStable", "is_eco": True, "params": {"rlusdWeight": 0.8}},
            {"name": "Aggressive", "is_eco": False, "params": {"rlusdWeight": 0.6}},
        ],
        duration,
    )
    return engine, ledger, proposal_id


def test_example_scenario(clock):
    engine, ledger, proposal_id = make_engine(clock)
    ledger.cast_stake(proposal_id, "rVoterA", "EcoStable", 15, 1.75)
    ledger.cast_stake(proposal_id, "rVoterB", "Aggressive", 20, 1.0)

    result = engine.tally(proposal_id)

    assert result.option("EcoStable").boosted_total == 26.25
    assert result.option("EcoStable").raw_total == 15
    assert result.option("EcoStable").eco_boost_impact == 11.25
    assert result.option("Aggressive").boosted_total == 20
    assert result.winning_option == "EcoStable"
    assert result.winning_params == {"rlusdWeight": 0.8}
    assert result.is_winner_eco is True
    assert result.total_boosted == 46.25
    assert result.total_raw == 35
    assert result.eco_percentage == pytest.approx(56.7567567, rel=1e-6)
    assert result.voter_count == 2


def test_tie_goes_to_first_declared_option(clock):
    engine, ledger, proposal_id = make_engine(clock, options=["First", "Second", "Third"])
    ledger.cast_stake(proposal_id, "r1", "Second", 10)
    ledger.cast_stake(proposal_id, "r2", "First", 10)
    ledger.cast_stake(proposal_id, "r3", "Third", 3)

    assert engine.tally(proposal_id).winning_option == "First"
    assert all(engine.tally(proposal_id).winning_option == "First" for _ in range(5))


def test_tie_break_follows_declared_order_not_stake_order(clock):
    engine, ledger, proposal_id = make_engine(clock, options=["Second", "First"])
    ledger.cast_stake(proposal_id, "r2", "First", 10)
    ledger.cast_stake(proposal_id, "r1", "Second", 10)

    assert engine.tally(proposal_id).winning_option == "Second"


def test_tally_without_stakes(clock):
    engine, _, proposal_id = make_engine(clock)

    result = engine.tally(proposal_id)

    assert result.winning_option == "EcoStable"
    assert result.total_boosted == 0
    assert result.eco_percentage == 0
    assert result.voter_count == 0


def test_revote_moves_contribution_between_options(clock):
    engine, ledger, proposal_id = make_engine(clock)
    ledger.cast_stake(proposal_id, "rV", "EcoStable", 10, 1.75)
    ledger.cast_stake(proposal_id, "rV", "Aggressive", 15)

    result = engine.tally(proposal_id)

    assert result.option("EcoStable").boosted_total == 0
    assert result.option("EcoStable").voter_count == 0
    assert result.option("Aggressive").boosted_total == 15
    assert result.winning_option == "Aggressive"
    assert result.eco_percentage == 0


def test_tally_freezes_proposal(clock):
    engine, ledger, proposal_id = make_engine(clock)
    ledger.cast_stake(proposal_id, "r1", "Aggressive", 5)

    first = engine.tally(proposal_id)

    proposal = engine.store.get_proposal(proposal_id)
    assert proposal.status == ProposalStatus.TALLIED
    assert proposal.tallied_at == clock.now
    with pytest.raises(ProposalClosed):
        ledger.cast_stake(proposal_id, "r2", "EcoStable", 100, 1.75)

    clock.advance(30)
    second = engine.tally(proposal_id)
    assert second == first
    assert second.to_dict() == first.to_dict()
    assert engine.get_result(proposal_id) is first


def test_tally_after_expiry_is_allowed(clock):
    engine, ledger, proposal_id = make_engine(clock, duration=60)
    ledger.cast_stake(proposal_id, "r1", "Aggressive", 5)

    clock.advance(120)
    result = engine.tally(proposal_id)

    assert result.is_expired is True
    assert result.winning_option == "Aggressive"


def test_tally_unknown_proposal(clock):
    engine, _, _ = make_engine(clock)
    with pytest.raises(ProposalNotFound):
        engine.tally("missing")


def test_incremental_and_recomputed_tallies_are_identical(clock):
    casts = [
        ("r1", "EcoStable", 0.1, 1.1),
        ("r2", "Aggressive", 0.2, 1.0),
        ("r3", "EcoStable", 0.7, 1.75),
        ("r1", "Aggressive", 0.3, 1.0),
        ("r4", "EcoStable", 2.675, 1.3),
        ("r3", "Aggressive", 1.15, 1.0),
    ]
    results = []
    for recompute in (False, True):
        engine, ledger, proposal_id = make_engine(clock)
        for voter, option, amount, boost in casts:
            ledger.cast_stake(proposal_id, voter, option, amount, boost)
        results.append(engine.tally(proposal_id, recompute=recompute))

    incremental, recomputed = results
    assert incremental.options == recomputed.options
    assert incremental.winning_option == recomputed.winning_option
    assert incremental.eco_percentage == recomputed.eco_percentage
    assert incremental.total_boosted == recomputed.total_boosted


def test_listener_called_once_per_proposal(clock):
    engine, ledger, proposal_id = make_engine(clock)
    received = []
    engine.add_listener(received.append)
    ledger.cast_stake(proposal_id, "r1", "Aggressive", 5)

    engine.tally(proposal_id)
    engine.tally(proposal_id)

    assert len(received) == 1
    assert received[0].winning_option == "Aggressive"


def test_failing_listener_does_not_break_tally(clock):
    engine, _, proposal_id = make_engine(clock)
    received = []

    def broken(result):
        raise RuntimeError("listener down")

    engine.add_listener(broken)
    engine.add_listener(received.append)

    result = engine.tally(proposal_id)

    assert received == [result]


def test_removed_listener_is_not_called(clock):
    engine, _, proposal_id = make_engine(clock)
    received = []
    engine.add_listener(received.append)
    engine.remove_listener(received.append)

    engine.tally(proposal_id)

    assert received == []


def test_top_voters_sorted_by_boosted_amount(clock):
    engine, ledger, proposal_id = make_engine(clock)
    ledger.cast_stake(proposal_id, "rSmall", "Aggressive", 5)
    ledger.cast_stake(proposal_id, "rBoosted", "EcoStable", 15, 1.75)
    ledger.cast_stake(proposal_id, "rBig", "Aggressive", 20)

    top = engine.top_voters(proposal_id, 10)

    assert [s.voter for s in top] == ["rBoosted", "rBig", "rSmall"]
    assert [s.voter for s in engine.top_voters(proposal_id, 2)] == ["rBoosted", "rBig"]


def test_top_voters_ties_prefer_earliest_stake(clock):
    engine, ledger, proposal_id = make_engine(clock)
    ledger.cast_stake(proposal_id, "rFirst", "Aggressive", 10)
    clock.advance(5)
    ledger.cast_stake(proposal_id, "rSecond", "Aggressive", 10)
    # 同時刻のステークは記録順
    ledger.cast_stake(proposal_id, "rThird", "EcoStable", 10, 1.0)

    top = engine.top_voters(proposal_id, 3)

    assert [s.voter for s in top] == ["rFirst", "rSecond", "rThird"]


def test_top_voters_uses_latest_revote(clock):
    engine, ledger, proposal_id = make_engine(clock)
    ledger.cast_stake(proposal_id, "rV", "Aggressive", 100)
    ledger.cast_stake(proposal_id, "rW", "Aggressive", 50)
    ledger.cast_stake(proposal_id, "rV", "Aggressive", 1)

    top = engine.top_voters(proposal_id, 5)

    assert [(s.voter, s.raw_amount) for s in top] == [("rW", 50), ("rV", 1)]


def test_top_voters_empty_and_non_positive_limit(clock):
    engine, ledger, proposal_id = make_engine(clock)

    assert engine.top_voters(proposal_id, 10) == []

    ledger.cast_stake(proposal_id, "r1", "Aggressive", 1)
    assert engine.top_voters(proposal_id, 0) == []
    with pytest.raises(ProposalNotFound):
        engine.top_voters("missing", 10)


@pytest.mark.parametrize("yield_percent, tier_name", [
    (-5, "bronze"),
    (0, "bronze"),
    (39, "bronze"),
    (39.99, "bronze"),
    (40.0, "bronze"),
    (59.99, "bronze"),
    (60, "silver"),
    (79.99, "silver"),
    (80, "gold"),
    (94.99, "gold"),
    (95, "platinum"),
    (200, "platinum"),
])
def test_tier_for_yield_boundaries(yield_percent, tier_name):
    assert tier_for_yield(yield_percent).name == tier_name


def test_tier_details():
    tier = tier_for_yield(82.5)
    assert tier.to_dict() == {
        "tier_name": "gold",
        "min_yield": 80,
        "reward_value": 100,
        "color": "#FFD700",
    }
    assert tier_for_yield(10).reward_value == 50
    assert tier_for_yield(97).color == "#E5E4E2"


def test_tier_for_yield_is_monotonic(clock):
    engine, _, _ = make_engine(clock)
    previous = engine.tier_for_yield(-10)
    for step in range(-20, 500):
        tier = engine.tier_for_yield(step * 0.5)
        assert tier.min_yield >= previous.min_yield
        previous = tier
