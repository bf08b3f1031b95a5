"""
Tests for the Network container and the error hierarchy.

Run with: pytest tests/test_network.py -v
"""

import pandas as pd
import pytest

from nmanet import (
    InvalidValueError,
    Network,
    NetworkDataError,
    StructuralError,
    combine_networks,
    network_from_agd_arm,
    network_from_agd_contrast,
    network_from_ipd,
)


@pytest.fixture
def arm_net(arm_counts):
    return network_from_agd_arm(arm_counts, study="studyc", trt="trtc", r="r", n="n")


@pytest.fixture
def contrast_net(contrast_data):
    return network_from_agd_contrast(contrast_data, study="studyc", trt="trtc",
                                     y="diff", se="se_diff", sample_size="n")


class TestEmptyNetwork:
    """Tests for the empty network."""

    def test_predicates(self):
        """The empty network holds nothing."""
        net = Network.empty()
        assert net.is_empty
        assert not net.has_ipd and not net.has_agd_arm and not net.has_agd_contrast
        assert net.n_treatments == 0 and net.n_studies == 0 and net.n_classes == 0
        assert net.trt_ref is None
        assert net.class_lookup() == {}

    def test_summaries(self):
        """Summaries of the empty network are well defined."""
        net = Network.empty()
        assert net.describe() == "Empty network"
        assert not net.is_connected()
        assert net.edges().empty
        summary = net.summary()
        assert summary["n_studies"] == 0
        assert summary["outcome"] == {"arm": None, "contrast": None, "individual": None}

    def test_zero_row_table_is_absent(self):
        """Zero-row tables are treated as absent."""
        net = Network(arm_data=pd.DataFrame({".study": [], ".trt": []}))
        assert net.arm_data is None
        assert net.is_empty


class TestNetworkStructure:
    """Tests for edges and connectivity."""

    def test_edges_two_arm(self, arm_net):
        """Two studies of the same comparison give one edge."""
        edges = arm_net.edges()
        assert len(edges) == 1
        row = edges.iloc[0]
        assert (row["trt1"], row["trt2"]) == ("A", "B")
        assert row["n_studies"] == 2
        assert row["studies"] == ["S1", "S2"]

    def test_edges_multi_arm(self, contrast_net):
        """A three-arm study contributes every pair of its arms."""
        edges = contrast_net.edges()
        pairs = list(zip(edges["trt1"], edges["trt2"]))
        assert pairs == [("B", "A"), ("B", "C"), ("B", "D"), ("A", "C"), ("C", "D")]

    def test_edge_studies_in_level_order(self):
        """Studies on an edge follow study level order, not row order."""
        df = pd.DataFrame({
            "s": ["S10", "S10", "S2", "S2", "S1", "S1"],
            "t": ["A", "B", "B", "A", "A", "B"],
            "r": [1, 2, 3, 4, 5, 6],
            "n": [10, 10, 10, 10, 10, 10],
        })
        net = network_from_agd_arm(df, study="s", trt="t", r="r", n="n")
        edges = net.edges()
        assert len(edges) == 1
        assert edges.iloc[0]["studies"] == ["S1", "S2", "S10"]
        assert edges.iloc[0]["n_studies"] == 3

    def test_connected(self, contrast_net):
        """Every treatment is reachable."""
        assert contrast_net.is_connected()

    def test_disconnected(self):
        """Two separate comparisons form a disconnected network."""
        df = pd.DataFrame({"s": ["S1", "S1", "S2", "S2"], "t": ["A", "B", "C", "D"],
                           "r": [1, 2, 3, 4], "n": [10, 10, 10, 10]})
        net = network_from_agd_arm(df, study="s", trt="t", r="r", n="n")
        assert not net.is_connected()
        assert "Network is disconnected" in net.describe()

    def test_connected_through_merge(self, arm_net, ipd_binary):
        """Sources sharing a treatment connect the merged network."""
        ipd = network_from_ipd(ipd_binary, study="studyc", trt="trtc", r="event")
        assert combine_networks(arm_net, ipd).is_connected()


class TestNetworkSummaries:
    """Tests for summary and describe."""

    def test_describe(self, arm_net):
        """The description lists studies, arms and the reference."""
        text = arm_net.describe()
        assert text.startswith("A network with 2 studies and 2 treatments")
        assert "Arm-based aggregate data (count):" in text
        assert "  S1: A | B" in text
        assert "Reference treatment: A (default)" in text

    def test_summary(self, arm_net, contrast_net):
        """Counts are taken per kind of data."""
        net = combine_networks(arm_net, contrast_net)
        summary = net.summary()
        assert summary["n_studies"] == 5
        assert summary["n_treatments"] == 4
        assert summary["n_agd_arm_studies"] == 2
        assert summary["n_agd_contrast_studies"] == 3
        assert summary["n_ipd_studies"] == 0
        assert summary["trt_ref"] == net.trt_ref
        assert summary["connected"]

    def test_repr(self, arm_net):
        """The repr names the reference treatment."""
        assert "trt_ref='A'" in repr(arm_net)

    def test_equality(self, arm_counts, arm_net):
        """Networks compare by content."""
        again = network_from_agd_arm(arm_counts, study="studyc", trt="trtc", r="r", n="n")
        other = network_from_agd_arm(arm_counts, study="studyc", trt="trtc",
                                     r="r", n="n", trt_ref="B")
        assert again == arm_net
        assert other != arm_net


class TestErrors:
    """Tests for the error hierarchy."""

    def test_value_errors(self):
        """All data errors are ValueErrors."""
        assert issubclass(StructuralError, NetworkDataError)
        assert issubclass(NetworkDataError, ValueError)

    def test_to_dict(self):
        """Errors carry the offending column and labels."""
        err = InvalidValueError("bad", column="r", labels=["S1", 2])
        assert err.to_dict() == {
            "error_type": "InvalidValueError",
            "message": "bad",
            "column": "r",
            "labels": ["S1", "2"],
        }
