"""Tests for sample subset construction."""

import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from assocquery.query.samples import EXCLUDED, build_sample_subset
from assocquery.store.covariate_table import CovariateTable


@pytest.mark.tier0
class TestBuildSampleSubset:
    def test_completeness_rule(self):
        table = CovariateTable(
            ["a", "b", "c", "d"],
            {"T2D": [1, None, 0, 1], "Cov1": [0.5, 0.1, None, 2.0], "X": [None] * 4},
        )
        subset = build_sample_subset(table, ["T2D", "Cov1"])
        assert subset.mask.tolist() == [True, False, False, True]
        assert subset.n == 4
        assert subset.n_included == 2
        assert subset.index_remap[0] == 0
        assert subset.index_remap[3] == 1
        assert subset.index_remap[1] == EXCLUDED

    def test_unrequested_columns_ignored(self):
        table = CovariateTable(["a", "b"], {"T2D": [1, 0], "X": [None, None]})
        assert build_sample_subset(table, ["T2D"]).n_included == 2

    def test_no_samples_included(self):
        table = CovariateTable(["a", "b"], {"T2D": [None, None]})
        subset = build_sample_subset(table, ["T2D"])
        assert subset.n_included == 0
        assert subset.included_indices.size == 0

    def test_immutable(self):
        table = CovariateTable(["a"], {"T2D": [1.0]})
        subset = build_sample_subset(table, ["T2D"])
        with pytest.raises(ValueError):
            subset.mask[0] = False

    @settings(max_examples=50, deadline=None)
    @given(
        st.lists(
            st.tuples(
                st.one_of(st.none(), st.floats(-5, 5)),
                st.one_of(st.none(), st.floats(-5, 5)),
            ),
            min_size=0,
            max_size=30,
        )
    )
    def test_remap_is_order_preserving_bijection(self, rows):
        ids = [f"s{i}" for i in range(len(rows))]
        table = CovariateTable(
            ids, {"T2D": [r[0] for r in rows], "Cov1": [r[1] for r in rows]}
        )
        subset = build_sample_subset(table, ["T2D", "Cov1"])

        expected = [r[0] is not None and r[1] is not None for r in rows]
        assert subset.mask.tolist() == expected
        assert subset.n_included <= subset.n
        included = subset.included_indices
        assert subset.index_remap[included].tolist() == list(range(len(included)))
