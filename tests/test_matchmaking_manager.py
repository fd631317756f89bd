"""
MatchmakingManager tests: join, verify, run matching, availability and loading.
"""
import pytest

from models import ParticipantStatus, TransactionState
from core.app_state import HIDDEN_STATUS, ActionStarted, ParticipantsLoaded
from core.exceptions import (
    ActionInProgress,
    MissingJoinFields,
    NotEnoughVerifiedParticipants,
    WalletNotConnected,
)
from core.record_store import RecordStore
from schemas import Participant
from services.fhe_service import decrypt_profile

ACCOUNT = "0x1234567890abcdef1234567890abcdef12345678"


def seed_participants(contract, ids, status="verified"):
    contract.put_json("participant_keys", list(ids))
    for offset, pid in enumerate(ids):
        # older ids get older timestamps so the loaded order matches `ids`
        contract.put_json(f"participant_{pid}", {
            "data": "FHE-e30=",
            "preferences": f"prefs {pid}",
            "timestamp": 1000 - offset,
            "status": status,
        })


class TestJoin:

    def test_requires_wallet(self, manager, contract):
        with pytest.raises(WalletNotConnected):
            manager.join("hiking", "secret")
        assert contract.writes == []

    @pytest.mark.parametrize("preferences,info", [("", "secret"), ("hiking", ""), ("", "")])
    def test_missing_fields_never_write(self, manager, contract, preferences, info):
        manager.connect_wallet(ACCOUNT)

        with pytest.raises(MissingJoinFields):
            manager.join(preferences, info)

        assert contract.writes == []
        assert manager.store.state.transaction_status == HIDDEN_STATUS

    def test_successful_join_persists_and_reloads(self, manager, contract, clock):
        manager.connect_wallet(ACCOUNT)

        participant = manager.join("likes jazz", "age 30")

        assert participant is not None
        assert participant.status == ParticipantStatus.PENDING
        assert participant.timestamp == int(clock.now)
        assert contract.get_json("participant_keys") == [participant.id]

        stored = contract.get_json(f"participant_{participant.id}")
        assert stored["status"] == "pending"
        assert stored["preferences"] == "likes jazz"
        assert decrypt_profile(stored["data"]) == {"preferences": "likes jazz", "encryptedInfo": "age 30"}

        state = manager.store.state
        assert [p.id for p in state.participants] == [participant.id]
        assert state.in_flight == frozenset()
        assert state.transaction_status.status == TransactionState.SUCCESS
        assert state.transaction_status.message == "Encrypted data submitted securely!"

    def test_success_banner_expires_after_two_seconds(self, manager, clock):
        manager.connect_wallet(ACCOUNT)
        manager.join("likes jazz", "age 30")

        clock.advance(1)
        assert manager.current_status().visible is True

        clock.advance(1)
        assert manager.current_status().visible is False

    def test_user_rejection_is_classified(self, manager, contract, clock):
        manager.connect_wallet(ACCOUNT)
        contract.set_failures["participant_"] = RuntimeError("MetaMask: user rejected transaction")

        assert manager.join("likes jazz", "age 30") is None

        status = manager.current_status()
        assert status.status == TransactionState.ERROR
        assert status.message == "Transaction rejected by user"

        clock.advance(3)
        assert manager.current_status().visible is False

    def test_generic_failure_message(self, manager, contract):
        manager.connect_wallet(ACCOUNT)
        contract.set_failures["participant_"] = RuntimeError("insufficient funds")

        manager.join("likes jazz", "age 30")

        assert manager.current_status().message == "Submission failed: insufficient funds"
        assert manager.store.state.in_flight == frozenset()

    def test_join_in_flight_is_rejected(self, manager, contract):
        manager.connect_wallet(ACCOUNT)
        manager.store.dispatch(ActionStarted(manager.JOIN))

        with pytest.raises(ActionInProgress):
            manager.join("likes jazz", "age 30")
        assert contract.writes == []


class TestVerify:

    def test_verify_updates_record_and_local_list(self, manager, contract):
        seed_participants(contract, ["a", "b"], status="pending")
        manager.load_data()
        manager.connect_wallet(ACCOUNT)

        assert manager.verify("b") is True

        stored = contract.get_json("participant_b")
        assert stored["status"] == "verified"
        assert stored["preferences"] == "prefs b"
        assert stored["timestamp"] == 999

        statuses = {p.id: p.status for p in manager.store.state.participants}
        assert statuses == {"a": ParticipantStatus.PENDING, "b": ParticipantStatus.VERIFIED}
        assert manager.current_status().message == "Participant verified successfully!"

    def test_verify_missing_participant_changes_nothing(self, manager, contract):
        seed_participants(contract, ["a"], status="pending")
        manager.load_data()
        manager.connect_wallet(ACCOUNT)
        before = dict(contract.data)

        assert manager.verify("ghost") is False

        assert contract.writes == []
        assert contract.data == before
        assert manager.store.state.participants[0].status == ParticipantStatus.PENDING
        status = manager.current_status()
        assert status.status == TransactionState.ERROR
        assert status.message == "Verification failed: Participant ghost not found"

    def test_failed_write_keeps_local_status(self, manager, contract):
        seed_participants(contract, ["a"], status="pending")
        manager.load_data()
        manager.connect_wallet(ACCOUNT)
        contract.set_failures["participant_a"] = RuntimeError("reverted")

        assert manager.verify("a") is False
        assert manager.store.state.participants[0].status == ParticipantStatus.PENDING

    def test_requires_wallet(self, manager):
        with pytest.raises(WalletNotConnected):
            manager.verify("a")


class TestRunMatching:

    def test_three_verified_produce_one_match(self, manager, contract, clock, settings):
        seed_participants(contract, ["p0", "p1", "p2"])
        manager.load_data()
        manager.connect_wallet(ACCOUNT)

        matches = manager.run_matching()

        assert len(matches) == 1
        assert (matches[0].participant1, matches[0].participant2) == ("p0", "p1")
        assert contract.get_json("match_keys") == [matches[0].id]
        assert clock.slept == [settings.matching_delay_seconds]

    def test_five_verified_produce_two_matches(self, manager, contract):
        seed_participants(contract, ["A", "B", "C", "D", "E"])
        manager.load_data()
        manager.connect_wallet(ACCOUNT)

        matches = manager.run_matching()

        assert [(m.participant1, m.participant2) for m in matches] == [("A", "B"), ("C", "D")]
        match_writes = [key for key, _ in contract.writes if key.startswith("match_") and key != "match_keys"]
        assert len(match_writes) == 2
        assert contract.get_json("match_keys") == [m.id for m in matches]

    def test_scores_in_range_and_cap_at_five(self, manager, contract):
        seed_participants(contract, [f"p{i}" for i in range(13)])
        manager.load_data()
        manager.connect_wallet(ACCOUNT)

        matches = manager.run_matching()

        assert len(matches) == 5
        assert all(60 <= m.compatibility_score <= 100 for m in matches)
        for m in matches:
            assert contract.get_json(f"match_{m.id}")["compatibilityScore"] == m.compatibility_score

    def test_pending_participants_are_skipped(self, manager, contract):
        seed_participants(contract, ["A", "B", "C"])
        contract.put_json("participant_B", {"data": "x", "preferences": "p", "timestamp": 999, "status": "pending"})
        manager.load_data()
        manager.connect_wallet(ACCOUNT)

        [match] = manager.run_matching()

        assert (match.participant1, match.participant2) == ("A", "C")

    def test_new_matches_are_prepended(self, manager, contract):
        seed_participants(contract, ["A", "B"])
        contract.put_json("match_keys", ["old"])
        contract.put_json("match_old", {"participant1": "x", "participant2": "y", "compatibilityScore": 70, "timestamp": 1})
        manager.load_data()
        manager.connect_wallet(ACCOUNT)

        [match] = manager.run_matching()

        assert [m.id for m in manager.store.state.matches] == [match.id, "old"]
        assert manager.current_status().message == "FHE matching completed successfully!"

    def test_not_enough_verified(self, manager, contract):
        seed_participants(contract, ["A"])
        manager.load_data()
        manager.connect_wallet(ACCOUNT)

        with pytest.raises(NotEnoughVerifiedParticipants):
            manager.run_matching()
        assert contract.writes == []

    def test_partial_failure_keeps_written_matches(self, manager, contract):
        seed_participants(contract, ["A", "B", "C", "D", "E", "F"])
        manager.load_data()
        manager.connect_wallet(ACCOUNT)
        # first match: record + index, then the second record write fails
        contract.max_writes = 2

        assert manager.run_matching() == []

        assert len(contract.get_json("match_keys")) == 1
        assert manager.store.state.matches == ()
        status = manager.current_status()
        assert status.status == TransactionState.ERROR
        assert status.message == "Matching failed: execution reverted"
        assert manager.store.state.in_flight == frozenset()


class TestAvailability:

    @pytest.mark.parametrize("available,message", [
        (True, "FHE matching service is available!"),
        (False, "Service temporarily unavailable"),
    ])
    def test_availability_result_is_a_success_banner(self, manager, contract, available, message):
        contract.available = available

        assert manager.check_availability() is available

        status = manager.current_status()
        assert status.status == TransactionState.SUCCESS
        assert status.message == message

    def test_availability_check_failure(self, manager, contract):
        contract.available = RuntimeError("network down")

        assert manager.check_availability() is None
        assert manager.current_status().message == "Availability check failed"
        assert manager.current_status().status == TransactionState.ERROR


class TestLoadData:

    def test_unavailable_contract_keeps_current_lists(self, manager, contract):
        existing = Participant(id="cached", encrypted_data="x", preferences="p", timestamp=1)
        manager.store.dispatch(ParticipantsLoaded((existing,)))
        seed_participants(contract, ["A"])
        contract.available = False

        manager.load_data()

        state = manager.store.state
        assert [p.id for p in state.participants] == ["cached"]
        assert state.loading is False
        assert state.is_refreshing is False

    def test_load_errors_are_swallowed(self, manager, contract):
        contract.get_failures["participant_keys"] = RuntimeError("rpc error")

        manager.load_data()

        assert manager.store.state.is_refreshing is False
        assert manager.store.state.participants == ()

    def test_refresh_while_refreshing_is_rejected(self, manager):
        assert manager.store.try_begin_refresh() is True

        with pytest.raises(ActionInProgress):
            manager.refresh()

    def test_join_reload_clears_refresh_flag(self, manager):
        manager.connect_wallet(ACCOUNT)
        assert manager.store.try_begin_refresh() is True

        manager.join("likes jazz", "age 30")

        assert manager.store.state.is_refreshing is False

    def test_loaded_lists_match_store(self, manager, contract):
        seed_participants(contract, ["A", "B"])

        manager.refresh()

        assert [p.id for p in manager.store.state.participants] == ["A", "B"]
        assert [p.id for p in RecordStore(contract).load_participants()] == ["A", "B"]
