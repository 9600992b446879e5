"""
Hypothesis Strategies for Property-Based Testing

Custom strategies for generating upload requests and file populations.
"""

import string
from datetime import timedelta

from hypothesis import strategies as st

# =============================================================================
# Primitive Strategies
# =============================================================================

filenames = st.text(min_size=0, max_size=60)

long_filenames = st.text(min_size=100, max_size=400)

hostile_filenames = st.builds(
    lambda parts, sep: sep.join(parts),
    st.lists(st.sampled_from(["..", ".", "etc", "passwd", "~", "", "a b"]), min_size=1, max_size=6),
    st.sampled_from(["/", "\\", "/./", "\\..\\"]),
)

owner_ids = st.one_of(st.none(), st.text(alphabet=string.ascii_lowercase, min_size=1, max_size=8))

download_budgets = st.one_of(st.none(), st.integers(min_value=0, max_value=10))

lifetimes = st.integers(min_value=1, max_value=7 * 24 * 3600).map(lambda s: timedelta(seconds=s))


# =============================================================================
# Composite Strategies
# =============================================================================

@st.composite
def file_specs(draw) -> dict:
    """Parameters for one upload plus how many downloads it receives."""
    budget = draw(download_budgets)
    return {
        "lifetime": draw(lifetimes),
        "max_downloads": budget,
        "owner_id": draw(owner_ids),
        "downloads": draw(st.integers(min_value=0, max_value=12)),
    }


file_populations = st.lists(file_specs(), min_size=0, max_size=15)
