"""
Tests for the guess service layer.

Verifies:
- Boundary validation rejects bad prices and karma
- Meme guesses are flagged against WOZ and excluded from FMV
- Repository joins guesses with current karma and persists to JSON
- FMV service fetches WOZ, active asking price and guesses at call time
- Guess updates respect the cooldown window
- Guess listing pages and karma rescoring after a sale
"""

import json
import math
import threading
from datetime import datetime, timedelta
from pathlib import Path
import sys

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.fmv_engine import FmvConfidence, WeightedGuess
from core.guesses import (
    FmvService,
    GuessCooldownError,
    Guesser,
    GuessProperty,
    GuessRepository,
    GuessValidationError,
    KarmaScore,
    Listing,
    ListingStatus,
    PriceGuess,
    PropertyNotFoundError,
    is_meme_guess,
    to_weighted_guess,
    validate_guessed_price,
    validate_karma,
)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def now():
    """Fixed submission time for deterministic tests."""
    return datetime(2025, 3, 1, 12, 0, 0)


@pytest.fixture
def repository():
    """Memory-only repository with one property and three guessers."""
    repo = GuessRepository()
    repo.add_property(GuessProperty("prop-1", "Keizersgracht 1, Amsterdam", woz_value=400000))
    repo.add_property(GuessProperty("prop-no-woz", "Damrak 2, Amsterdam"))
    repo.add_user(Guesser("alice", "alice", karma=10))
    repo.add_user(Guesser("bob", "bob", karma=10))
    repo.add_user(Guesser("carol", "carol", karma=-5))
    return repo


@pytest.fixture
def service(repository):
    """FMV service over the fixture repository."""
    return FmvService(repository=repository, cooldown=timedelta(days=5))


# =============================================================================
# Test: Boundary Validation
# =============================================================================

class TestValidation:
    """Tests for guess boundary validation."""

    @pytest.mark.parametrize("price", [350000, 350000.5, 1])
    def test_valid_prices(self, price):
        assert validate_guessed_price(price) == price

    @pytest.mark.parametrize("price", [0, -1, -350000])
    def test_non_positive_price_rejected(self, price):
        with pytest.raises(GuessValidationError) as exc:
            validate_guessed_price(price)
        assert exc.value.field == "guessed_price"

    @pytest.mark.parametrize("price", [math.inf, math.nan])
    def test_non_finite_price_rejected(self, price):
        with pytest.raises(GuessValidationError):
            validate_guessed_price(price)

    @pytest.mark.parametrize("price", ["350000", None, True])
    def test_non_numeric_price_rejected(self, price):
        with pytest.raises(GuessValidationError):
            validate_guessed_price(price)

    def test_negative_karma_allowed(self):
        assert validate_karma(-50) == -50

    @pytest.mark.parametrize("karma", [1.5, "10", None, False])
    def test_non_integer_karma_rejected(self, karma):
        with pytest.raises(GuessValidationError) as exc:
            validate_karma(karma)
        assert exc.value.field == "karma"

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_guessed_price(-1)

    def test_to_weighted_guess(self):
        assert to_weighted_guess(350000, 5) == WeightedGuess(350000, 5)


class TestMemeGuess:
    """Tests for meme guess detection."""

    def test_reasonable_guess_is_not_meme(self):
        assert not is_meme_guess(420000, 400000)

    def test_far_below_woz_is_meme(self):
        assert is_meme_guess(79999, 400000)

    def test_far_above_woz_is_meme(self):
        assert is_meme_guess(2000001, 400000)

    def test_boundaries_are_not_memes(self):
        assert not is_meme_guess(80000, 400000)
        assert not is_meme_guess(2000000, 400000)

    @pytest.mark.parametrize("woz", [None, 0, -1])
    def test_never_meme_without_woz(self, woz):
        assert not is_meme_guess(1, woz)


# =============================================================================
# Test: Repository
# =============================================================================

class TestGuessRepository:
    """Tests for the in-memory guess repository."""

    def test_active_asking_price_uses_latest_active(self, repository, now):
        repository.add_listing(Listing("l-1", "prop-1", 390000, created_at=now - timedelta(days=30)))
        repository.add_listing(Listing("l-2", "prop-1", 410000, created_at=now))
        repository.add_listing(Listing(
            "l-3", "prop-1", 999999, status=ListingStatus.WITHDRAWN, created_at=now + timedelta(days=1),
        ))

        assert repository.active_asking_price("prop-1") == 410000

    def test_no_active_listing_returns_none(self, repository, now):
        repository.add_listing(Listing("l-1", "prop-1", 390000, status=ListingStatus.SOLD, created_at=now))

        assert repository.active_asking_price("prop-1") is None

    def test_weighted_guesses_use_current_karma(self, repository, now):
        repository.save_guess(PriceGuess.create("prop-1", "alice", 420000, False, now=now))
        repository.add_user(Guesser("alice", "alice", karma=99))

        assert repository.weighted_guesses("prop-1") == [WeightedGuess(420000, 99)]

    def test_weighted_guesses_skip_memes(self, repository, now):
        repository.save_guess(PriceGuess.create("prop-1", "alice", 420000, False, now=now))
        repository.save_guess(PriceGuess.create("prop-1", "bob", 1, True, now=now))

        assert len(repository.list_guesses("prop-1")) == 2
        assert repository.weighted_guesses("prop-1") == [WeightedGuess(420000, 10)]

    def test_weighted_guesses_skip_unknown_users(self, repository, now):
        repository.save_guess(PriceGuess.create("prop-1", "ghost", 420000, False, now=now))

        assert repository.weighted_guesses("prop-1") == []

    def test_one_guess_per_user_per_property(self, repository, now):
        first = PriceGuess.create("prop-1", "alice", 420000, False, now=now)
        repository.save_guess(first)
        first.guessed_price = 430000
        repository.save_guess(first)

        assert [g.guessed_price for g in repository.list_guesses("prop-1")] == [430000]

    def test_persists_and_reloads(self, tmp_path, now):
        path = tmp_path / "guesses.json"
        repo = GuessRepository(str(path))
        repo.add_property(GuessProperty("prop-1", "Keizersgracht 1", woz_value=400000))
        repo.add_user(Guesser("alice", "alice", karma=10))
        repo.add_listing(Listing("l-1", "prop-1", 410000, created_at=now))
        repo.save_guess(PriceGuess.create("prop-1", "alice", 420000, False, now=now))

        reloaded = GuessRepository(str(path))

        assert reloaded.get_property("prop-1").woz_value == 400000
        assert reloaded.active_asking_price("prop-1") == 410000
        assert reloaded.weighted_guesses("prop-1") == [WeightedGuess(420000, 10)]
        assert reloaded.get_guess("prop-1", "alice").created_at == now

    def test_corrupt_file_starts_empty(self, tmp_path, caplog):
        path = tmp_path / "guesses.json"
        path.write_text("{not json")

        repo = GuessRepository(str(path))

        assert repo.get_property("prop-1") is None
        assert "Could not load guess repository" in caplog.text

    def test_fractional_karma_refused(self, repository):
        with pytest.raises(GuessValidationError) as exc:
            repository.add_user(Guesser("dave", "dave", karma=2.5))

        assert exc.value.field == "karma"
        assert repository.get_user("dave") is None

    def test_file_with_fractional_karma_not_loaded(self, tmp_path, caplog):
        path = tmp_path / "guesses.json"
        path.write_text(json.dumps({
            "users": [{"user_id": "dave", "username": "dave", "karma": 2.5}],
        }))

        repo = GuessRepository(str(path))

        assert repo.get_user("dave") is None
        assert "Could not load guess repository" in caplog.text

    def test_resolved_guesses_only_sold_non_meme(self, repository, now):
        repository.add_property(GuessProperty("prop-sold", "Damrak 3", woz_value=400000, sold_price=410000))
        repository.save_guess(PriceGuess.create("prop-sold", "alice", 400000, False, now=now))
        repository.save_guess(PriceGuess.create("prop-1", "alice", 420000, False, now=now))
        repository.save_guess(PriceGuess.create("prop-sold", "bob", 1, True, now=now))

        assert repository.resolved_guesses("alice") == [(400000, 410000)]
        assert repository.resolved_guesses("bob") == []

    def test_reads_during_concurrent_writes(self, repository, now):
        errors = []
        done = threading.Event()

        def write():
            for i in range(2000):
                repository.save_guess(PriceGuess.create("prop-1", f"user-{i}", 400000, False, now=now))
                repository.add_listing(Listing(f"l-{i}", "prop-1", 400000 + i, created_at=now))
            done.set()

        def read():
            try:
                while not done.is_set():
                    repository.list_guesses("prop-1")
                    repository.active_asking_price("prop-1")
            except RuntimeError as e:
                errors.append(e)

        readers = [threading.Thread(target=read) for _ in range(2)]
        writer = threading.Thread(target=write)
        for thread in readers + [writer]:
            thread.start()
        for thread in readers + [writer]:
            thread.join()

        assert errors == []
        assert len(repository.list_guesses("prop-1")) == 2000

    def test_saved_file_is_json(self, tmp_path):
        path = tmp_path / "nested" / "guesses.json"
        repo = GuessRepository(str(path))
        repo.add_property(GuessProperty("prop-1", "Keizersgracht 1", woz_value=400000))

        data = json.loads(path.read_text())
        assert data["properties"][0]["woz_value"] == 400000


# =============================================================================
# Test: FMV Service
# =============================================================================

class TestCalculateForProperty:
    """Tests for FMV calculation per stored property."""

    def test_unknown_property_raises(self, service):
        with pytest.raises(PropertyNotFoundError):
            service.calculate_for_property("missing")

    def test_no_guesses_returns_woz(self, service, repository, now):
        repository.add_listing(Listing("l-1", "prop-1", 500000, created_at=now))

        result = service.calculate_for_property("prop-1")

        assert result.fmv == 400000
        assert result.confidence == FmvConfidence.NONE
        assert result.asking_price == 500000
        assert result.divergence == -20.0

    def test_no_guesses_no_woz(self, service):
        result = service.calculate_for_property("prop-no-woz")

        assert result.fmv is None
        assert result.distribution is None

    def test_blends_guesses_with_woz(self, service, now):
        service.submit_guess("prop-1", "alice", 500000, now=now)

        result = service.calculate_for_property("prop-1")

        assert result.fmv == 430000
        assert result.confidence == FmvConfidence.LOW
        assert result.guess_count == 1

    def test_meme_guesses_excluded(self, service, now):
        service.submit_guess("prop-1", "alice", 500000, now=now)
        meme = service.submit_guess("prop-1", "bob", 10, now=now)

        result = service.calculate_for_property("prop-1")

        assert meme.guess.is_meme_guess
        assert result.guess_count == 1

    def test_negative_karma_counts_as_one(self, service, now):
        service.submit_guess("prop-no-woz", "alice", 300000, now=now)
        service.submit_guess("prop-no-woz", "carol", 410000, now=now)

        result = service.calculate_for_property("prop-no-woz")

        # (300000*10 + 410000*1) / 11
        assert result.fmv == 310000


class TestSubmitGuess:
    """Tests for guess submission and cooldown."""

    def test_new_guess_stored(self, service, repository, now):
        submission = service.submit_guess("prop-1", "alice", 420000, now=now)

        assert submission.created
        assert submission.guess.created_at == now
        assert repository.get_guess("prop-1", "alice") is submission.guess

    def test_invalid_price_rejected(self, service, now):
        with pytest.raises(GuessValidationError):
            service.submit_guess("prop-1", "alice", -5, now=now)

    def test_unknown_property_rejected(self, service, now):
        with pytest.raises(PropertyNotFoundError):
            service.submit_guess("missing", "alice", 420000, now=now)

    def test_unknown_user_rejected(self, service, now):
        with pytest.raises(PropertyNotFoundError) as exc:
            service.submit_guess("prop-1", "nobody", 420000, now=now)
        assert exc.value.kind == "User"

    def test_update_inside_cooldown_rejected(self, service, now):
        service.submit_guess("prop-1", "alice", 420000, now=now)

        with pytest.raises(GuessCooldownError) as exc:
            service.submit_guess("prop-1", "alice", 430000, now=now + timedelta(days=4))

        assert exc.value.cooldown_ends_at == now + timedelta(days=5)

    def test_update_after_cooldown_allowed(self, service, now):
        service.submit_guess("prop-1", "alice", 420000, now=now)

        submission = service.submit_guess("prop-1", "alice", 430000, now=now + timedelta(days=5))
        updated = submission.guess

        assert not submission.created
        assert updated.guessed_price == 430000
        assert updated.created_at == now
        assert updated.updated_at == now + timedelta(days=5)

    def test_update_reflags_meme(self, service, now):
        service.submit_guess("prop-1", "alice", 10, now=now)

        updated = service.submit_guess("prop-1", "alice", 420000, now=now + timedelta(days=6))

        assert not updated.guess.is_meme_guess


class TestListGuesses:
    """Tests for paginated guess listing."""

    @pytest.fixture
    def with_guesses(self, repository, now):
        for i, name in enumerate(("alice", "bob", "carol", "ghost")):
            repository.save_guess(PriceGuess.create(
                "prop-1", name, 400000 + i * 1000, False, now=now + timedelta(hours=i),
            ))
        return repository

    def test_first_page(self, service, with_guesses):
        page = service.list_guesses("prop-1", page=1, limit=2)

        assert [e.user.user_id for e in page.entries] == ["alice", "bob"]
        assert page.total == 3
        assert page.total_pages == 2

    def test_last_page(self, service, with_guesses):
        page = service.list_guesses("prop-1", page=2, limit=2)

        assert [e.guess.user_id for e in page.entries] == ["carol"]

    def test_entry_carries_karma_rank(self, service, with_guesses):
        entry = service.list_guesses("prop-1").entries[0]

        assert entry.to_dict()["user"] == {
            "user_id": "alice",
            "username": "alice",
            "karma": 10,
            "karmaRank": {"title": "Bewoner", "level": 2},
        }

    def test_invalid_page_rejected(self, service):
        with pytest.raises(ValueError):
            service.list_guesses("prop-1", page=0)

    def test_unknown_property_raises(self, service):
        with pytest.raises(PropertyNotFoundError):
            service.list_guesses("missing")


# =============================================================================
# Test: Karma Recalculation
# =============================================================================

class TestKarmaRecalculation:
    """Tests for rescoring guessers after a sale."""

    def test_record_sale_rescores_guessers(self, service, repository, now):
        service.submit_guess("prop-1", "alice", 400000, now=now)
        service.submit_guess("prop-1", "bob", 100000, now=now)
        service.submit_guess("prop-1", "carol", 10, now=now)

        scores = service.record_sale("prop-1", 400000)

        assert scores == {
            "alice": KarmaScore(karma=5, internal_karma=5),
            "bob": KarmaScore(karma=0, internal_karma=-1),
        }
        assert repository.get_user("alice").karma == 5
        assert repository.get_user("bob").internal_karma == -1
        # Meme guessers are not rescored
        assert repository.get_user("carol").karma == -5
        assert repository.get_property("prop-1").sold_price == 400000

    def test_new_karma_weights_next_estimate(self, service, repository, now):
        service.submit_guess("prop-1", "alice", 400000, now=now)
        service.submit_guess("prop-no-woz", "alice", 300000, now=now)
        service.submit_guess("prop-no-woz", "bob", 400000, now=now)

        service.record_sale("prop-1", 400000)
        result = service.calculate_for_property("prop-no-woz")

        # alice now weighs 5, bob still 10
        assert repository.get_user("alice").karma == 5
        assert result.fmv == 366667

    def test_recalculate_counts_all_sold_properties(self, service, repository, now):
        repository.add_property(GuessProperty("prop-2", "Damrak 3", woz_value=400000, sold_price=400000))
        service.submit_guess("prop-2", "alice", 400000, now=now)
        service.submit_guess("prop-1", "alice", 400000, now=now + timedelta(hours=1))
        repository.add_property(GuessProperty("prop-1", "Keizersgracht 1", woz_value=400000, sold_price=400000))

        assert service.recalculate_karma("alice") == KarmaScore(10, 10)

    def test_recalculate_unknown_user(self, service):
        with pytest.raises(PropertyNotFoundError):
            service.recalculate_karma("nobody")

    def test_record_sale_unknown_property(self, service):
        with pytest.raises(PropertyNotFoundError):
            service.record_sale("missing", 400000)

    def test_record_sale_invalid_price(self, service):
        with pytest.raises(GuessValidationError):
            service.record_sale("prop-1", 0)
