"""
Hypothesis Property-Based Tests for quota admission.

Tests the admission invariants over arbitrary usage snapshots.
"""

from datetime import UTC, datetime, timedelta

from hypothesis import assume, given, settings
from hypothesis import strategies as st

from novluma.models.api import UserRole
from novluma.models.domain import UsageRecord
from novluma.services.quota import admit, days_since, is_cycle_stale
from novluma.services.upstream import count_words, extract_generated_text

# ============================================================================
# Hypothesis Strategies
# ============================================================================

LIMIT = 5000
CYCLE_DAYS = 30

instants = st.datetimes(
    min_value=datetime(2020, 1, 1),
    max_value=datetime(2030, 1, 1),
    timezones=st.just(UTC),
)
usage_amounts = st.integers(min_value=0, max_value=1_000_000)
fresh_offsets = st.floats(min_value=0, max_value=CYCLE_DAYS * 86400, allow_nan=False)
stale_offsets = st.floats(
    min_value=CYCLE_DAYS * 86400 + 1, max_value=400 * 86400, allow_nan=False
)


@st.composite
def usage_records(draw, offsets=None):
    """Generate a (UsageRecord, now) pair with cycle_start `offset` seconds before now."""
    now = draw(instants)
    offset = draw(offsets if offsets is not None else st.one_of(fresh_offsets, stale_offsets))
    usage = UsageRecord(
        words_used=draw(usage_amounts),
        cycle_start=now - timedelta(seconds=offset),
    )
    return usage, now


# ============================================================================
# Admission Invariants
# ============================================================================


class TestAdmissionMonotonicityProperties:
    """Non-admins are rejected exactly when post-reset usage reaches the limit."""

    @given(usage_records())
    @settings(max_examples=200)
    def test_rejects_iff_post_reset_usage_at_limit(self, record):
        """admitted == (post-reset usage < limit)."""
        usage, now = record
        decision = admit(usage, UserRole.USER, now, limit=LIMIT, cycle_days=CYCLE_DAYS)

        stale = is_cycle_stale(usage.cycle_start, now, CYCLE_DAYS)
        expected_used = 0 if stale else usage.words_used
        assert decision.words_used == expected_used
        assert decision.admitted is (expected_used < LIMIT)

    @given(usage_records(offsets=fresh_offsets))
    @settings(max_examples=100)
    def test_fresh_cycle_never_resets(self, record):
        """Inside the cycle the stored usage is used as-is."""
        usage, now = record
        decision = admit(usage, UserRole.USER, now, limit=LIMIT, cycle_days=CYCLE_DAYS)

        assert decision.reset_required is False
        assert decision.words_used == usage.words_used


class TestLazyResetProperties:
    """A stale cycle always resets and admits."""

    @given(usage_records(offsets=stale_offsets))
    @settings(max_examples=100)
    def test_stale_cycle_always_admits(self, record):
        """Pre-reset usage is irrelevant once the cycle is stale."""
        usage, now = record
        decision = admit(usage, UserRole.USER, now, limit=LIMIT, cycle_days=CYCLE_DAYS)

        assert decision.reset_required is True
        assert decision.admitted is True
        assert decision.words_used == 0


class TestAdminBypassProperties:
    """Admins are always admitted and never reset."""

    @given(usage_records())
    @settings(max_examples=100)
    def test_admin_always_admitted_without_reset(self, record):
        """No usage value or cycle age affects an admin."""
        usage, now = record
        decision = admit(usage, UserRole.ADMIN, now, limit=LIMIT, cycle_days=CYCLE_DAYS)

        assert decision.admitted is True
        assert decision.reset_required is False
        assert decision.words_used == usage.words_used


class TestDaysSinceProperties:
    """Property-based tests for days_since."""

    @given(instants, st.floats(min_value=-400 * 86400, max_value=400 * 86400, allow_nan=False))
    @settings(max_examples=100)
    def test_symmetric(self, now, offset):
        """Clock skew in either direction gives the same day count."""
        start = now - timedelta(seconds=offset)
        mirrored = now + timedelta(seconds=offset)
        assert days_since(start, now) == days_since(mirrored, now)

    @given(instants, st.integers(min_value=0, max_value=400))
    @settings(max_examples=100)
    def test_whole_days_exact(self, now, days):
        """Whole-day offsets are not rounded."""
        assert days_since(now - timedelta(days=days), now) == days


# ============================================================================
# Word Counting
# ============================================================================

words = st.text(
    alphabet=st.characters(blacklist_categories=("Zs", "Zl", "Zp", "Cc")),
    min_size=1,
    max_size=12,
)
separators = st.sampled_from([" ", "  ", "\n", "\t", " \n\t "])


class TestCountWordsProperties:
    """Property-based tests for count_words."""

    @given(st.lists(words, max_size=50), separators)
    @settings(max_examples=100)
    def test_counts_whitespace_separated_tokens(self, tokens, separator):
        """Any run of whitespace separates exactly two tokens."""
        assume(all(not t.isspace() and t.split() == [t] for t in tokens))
        text = separator.join(tokens)
        assert count_words(f"{separator}{text}{separator}") == len(tokens)

    @given(st.text(alphabet=" \n\t\r", max_size=20))
    @settings(max_examples=50)
    def test_whitespace_only_is_zero(self, text):
        """Blank output costs nothing."""
        assert count_words(text) == 0


class TestExtractGeneratedTextProperties:
    """Property-based tests for extract_generated_text."""

    @given(
        st.recursive(
            st.none() | st.booleans() | st.integers() | st.text(max_size=5),
            lambda children: st.lists(children, max_size=3)
            | st.dictionaries(st.text(max_size=10), children, max_size=3),
            max_leaves=10,
        )
    )
    @settings(max_examples=200)
    def test_never_raises(self, body):
        """Arbitrary JSON shapes yield a string, never an exception."""
        assert isinstance(extract_generated_text(body), str)
