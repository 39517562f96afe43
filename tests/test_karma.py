"""
Tests for guesser karma scoring.

Verifies:
- Rank titles by karma threshold, negative karma ranking as 0
- Accuracy rewards and penalty by deviation from sale price
- New-account weighting, streak bonus and the public floor at 0
"""

from pathlib import Path
import sys

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.guesses.karma import (
    KarmaScore,
    ResolvedGuess,
    calculate_karma,
    get_karma_rank,
    score_guess_accuracy,
    to_resolved_guesses,
)


SALE = 400000


def resolved(*prices, start_index=0):
    """Resolved guesses against SALE, indexed from start_index."""
    return [
        ResolvedGuess(guessed_price=price, actual_price=SALE, guess_index=start_index + i)
        for i, price in enumerate(prices)
    ]


# =============================================================================
# Test: Rank Titles
# =============================================================================

class TestGetKarmaRank:
    """Tests for karma rank titles."""

    @pytest.mark.parametrize("karma,title,level", [
        (0, "Nieuwkomer", 1),
        (9, "Nieuwkomer", 1),
        (10, "Bewoner", 2),
        (49, "Bewoner", 2),
        (50, "Kenner", 3),
        (100, "Specialist", 4),
        (199, "Specialist", 4),
        (200, "Meester", 5),
        (499, "Meester", 5),
        (500, "Legende", 6),
        (10000, "Legende", 6),
    ])
    def test_thresholds(self, karma, title, level):
        rank = get_karma_rank(karma)

        assert (rank.title, rank.level) == (title, level)

    def test_negative_karma_is_newcomer(self):
        assert get_karma_rank(-50).to_dict() == {"title": "Nieuwkomer", "level": 1}


# =============================================================================
# Test: Accuracy Scoring
# =============================================================================

class TestScoreGuessAccuracy:
    """Tests for scoring a single guess against the sale price."""

    def test_exact_guess(self):
        score = score_guess_accuracy(400000, SALE)

        assert score.reward == 10
        assert score.deviation == 0

    @pytest.mark.parametrize("guess,reward", [
        (420000, 10),   # 5% is inclusive
        (384000, 10),
        (440000, 5),    # 10%
        (360000, 5),
        (480000, 2),    # 20%
        (320000, 2),
        (500000, 0),    # 25%
        (600000, 0),    # 50% is still no penalty
        (100000, -3),   # 75%
        (1000000, -3),
    ])
    def test_reward_tiers(self, guess, reward):
        assert score_guess_accuracy(guess, SALE).reward == reward

    def test_deviation_is_relative(self):
        assert score_guess_accuracy(360000, SALE).deviation == pytest.approx(0.1)

    @pytest.mark.parametrize("actual", [0, -100])
    def test_non_positive_sale_price(self, actual):
        score = score_guess_accuracy(400000, actual)

        assert score.reward == 0
        assert score.deviation == 1.0


# =============================================================================
# Test: Karma Calculation
# =============================================================================

class TestCalculateKarma:
    """Tests for karma over a user's resolved guesses."""

    def test_no_guesses(self):
        assert calculate_karma([]) == KarmaScore(karma=0, internal_karma=0)

    def test_first_guesses_count_half(self):
        assert calculate_karma(resolved(400000)) == KarmaScore(5, 5)

    def test_full_weight_after_new_account_threshold(self):
        assert calculate_karma(resolved(400000, start_index=5)).karma == 10

    def test_half_rounds_up(self):
        # 5 * 0.5 = 2.5
        assert calculate_karma(resolved(440000)).karma == 3

    def test_penalty_floors_public_karma(self):
        # -3 * 0.5 = -1.5 rounds half up to -1
        assert calculate_karma(resolved(100000)) == KarmaScore(karma=0, internal_karma=-1)

    def test_many_penalties_keep_negative_internal(self):
        result = calculate_karma(resolved(*[100000] * 8))

        assert result.karma == 0
        assert result.internal_karma < 0

    def test_streak_bonus_every_five(self):
        result = calculate_karma(resolved(*[400000] * 10, start_index=5))

        # 10 * 10 + 2 bonuses of 2
        assert result.karma == 104

    def test_streak_resets_on_inaccurate_guess(self):
        prices = [400000] * 4 + [500000] + [400000] * 4
        result = calculate_karma(resolved(*prices, start_index=5))

        assert result.karma == 80

    def test_new_account_and_streak_combined(self):
        # 5 * 5 + 5 * 10 + 2 bonuses of 2
        assert calculate_karma(resolved(*[400000] * 10)).karma == 79

    def test_mixed_tiers(self):
        result = calculate_karma(resolved(400000, 370000, 340000, 500000, 100000, start_index=5))

        assert result == KarmaScore(14, 14)

    def test_to_resolved_guesses_indexes_in_order(self):
        guesses = to_resolved_guesses([(400000, SALE), (380000, SALE)])

        assert [g.guess_index for g in guesses] == [0, 1]
        assert guesses[1].guessed_price == 380000
