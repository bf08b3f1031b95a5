"""
Tests for combining networks.

Run with: pytest tests/test_combine.py -v
"""

import warnings

import pandas as pd
import pytest

from nmanet import (
    Network,
    NetworkAdvisory,
    OutcomeType,
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
def ipd_net(ipd_binary):
    return network_from_ipd(ipd_binary, study="studyc", trt="trtc", r="event")


@pytest.fixture
def contrast_net(contrast_data):
    return network_from_agd_contrast(contrast_data, study="studyc", trt="trtc",
                                     y="diff", se="se_diff", sample_size="n")


class TestCombineNetworks:
    """Tests for combine_networks."""

    def test_arm_and_ipd(self, arm_net, ipd_net):
        """Sources share one code space and a re-derived reference."""
        net = combine_networks(arm_net, ipd_net)

        assert list(net.treatments) == ["B", "A", "C"]
        assert net.default_reference
        assert list(net.studies) == ["I1", "I2", "S1", "S2"]
        assert net.outcome.arm == OutcomeType.COUNT
        assert net.outcome.individual == OutcomeType.BINARY
        for table in (net.arm_data, net.individual_data):
            assert list(table[".trt"].cat.categories) == ["B", "A", "C"]
            assert list(table[".study"].cat.categories) == ["I1", "I2", "S1", "S2"]

    def test_rows_keep_source_order(self, arm_net, contrast_net):
        """Rows of each source keep their order, contrast rows stay grouped."""
        net = combine_networks(arm_net, contrast_net)
        assert list(net.arm_data[".r"]) == [5, 8, 3, 4]
        assert list(net.contrast_data[".study"]) == list(contrast_net.contrast_data[".study"])
        assert net.outcome.contrast == OutcomeType.CONTINUOUS

    def test_single_source_unchanged(self, arm_net, contrast_net):
        """Combining one source gives the same network."""
        assert combine_networks(arm_net) == arm_net
        assert combine_networks(contrast_net) == contrast_net

    def test_single_source_explicit_reference(self, arm_counts):
        """Combining one source with its own reference gives the same network."""
        net = network_from_agd_arm(arm_counts, study="studyc", trt="trtc",
                                   r="r", n="n", trt_ref="B")
        assert combine_networks(net, trt_ref="B") == net

    def test_empty_sources_ignored(self, arm_net):
        """Empty sources contribute nothing."""
        assert combine_networks(arm_net, Network.empty()) == arm_net

    def test_all_empty(self):
        """Combining empty sources gives the empty network."""
        assert combine_networks(Network.empty(), Network.empty()).is_empty

    def test_explicit_reference(self, arm_net, ipd_net):
        """An explicit reference leads the merged levels."""
        net = combine_networks(arm_net, ipd_net, trt_ref="C")
        assert list(net.treatments) == ["C", "A", "B"]
        assert not net.default_reference

    def test_reference_not_found(self, arm_net, ipd_net):
        """An unmatched reference lists suitable values from the network."""
        with pytest.raises(StructuralError, match="in the network"):
            combine_networks(arm_net, ipd_net, trt_ref="Z")

    def test_study_collision(self, arm_net, arm_means):
        """A study label in two sources is rejected."""
        other = network_from_agd_arm(arm_means, study="studyc", trt="trtc",
                                     y="y", se="se", sample_size="size")
        with pytest.raises(StructuralError, match="multiple data sources") as excinfo:
            combine_networks(arm_net, other)
        assert "S1" in excinfo.value.labels

    def test_conflicting_arm_outcomes(self, arm_net, arm_means):
        """Two arm-based sources must share an outcome type."""
        df = arm_means.assign(studyc=["M1", "M1", "M2", "M2", "M3", "M3"])
        other = network_from_agd_arm(df, study="studyc", trt="trtc",
                                     y="y", se="se", sample_size="size")
        with pytest.raises(StructuralError, match="Multiple outcome types"):
            combine_networks(arm_net, other)

    def test_unsupported_outcome_combination(self, arm_net, ipd_binary):
        """Arm-based counts and continuous IPD cannot be combined."""
        ipd = network_from_ipd(ipd_binary, study="studyc", trt="trtc", y="weight")
        with pytest.raises(StructuralError, match="not supported"):
            combine_networks(arm_net, ipd)

    def test_arm_counts_with_contrast(self, contrast_net):
        """Arm-based counts combine with contrast data."""
        df = pd.DataFrame({"s": ["B1", "B1"], "t": ["A", "B"], "r": [0, 1], "n": [1, 1]})
        arm = network_from_agd_arm(df, study="s", trt="t", r="r", n="n")
        net = combine_networks(arm, contrast_net)
        assert net.outcome.contrast == OutcomeType.CONTINUOUS

    def test_not_a_network(self, arm_net, arm_counts):
        """Only networks can be combined."""
        with pytest.raises(TypeError):
            combine_networks(arm_net, arm_counts)
        with pytest.raises(TypeError):
            combine_networks()


class TestCombineClasses:
    """Tests for combining treatment classes."""

    def test_classes_dropped_with_advisory(self, arm_classes, ipd_net):
        """Classes are dropped unless every source has them."""
        arm = network_from_agd_arm(arm_classes, study="studyc", trt="trtc",
                                   r="r", n="n", trt_class="cls")
        with pytest.warns(NetworkAdvisory, match="Removing treatment class"):
            net = combine_networks(arm, ipd_net)
        assert net.classes is None
        assert ".trtclass" not in net.arm_data.columns

    def test_classes_merged(self, arm_classes, ipd_binary):
        """Classes from every source are merged and aligned to treatments."""
        arm = network_from_agd_arm(arm_classes, study="studyc", trt="trtc",
                                   r="r", n="n", trt_class="cls")
        ipd = network_from_ipd(ipd_binary.assign(cls="Drug"), study="studyc",
                               trt="trtc", r="event", trt_class="cls")
        net = combine_networks(arm, ipd)

        assert list(net.treatments) == ["A", "B", "C", "D"]
        assert list(net.classes) == ["Placebo", "Drug", "Drug", "Surgery"]
        assert list(net.classes.categories) == ["Placebo", "Drug", "Surgery"]
        assert list(net.individual_data[".trtclass"].cat.categories) == [
            "Placebo", "Drug", "Surgery"
        ]

    def test_conflicting_classes(self, arm_classes, ipd_binary):
        """A treatment in different classes across sources is rejected."""
        arm = network_from_agd_arm(arm_classes, study="studyc", trt="trtc",
                                   r="r", n="n", trt_class="cls")
        ipd = network_from_ipd(ipd_binary.assign(cls=["Other", "Other", "Drug", "Drug"] * 2),
                               study="studyc", trt="trtc", r="event", trt_class="cls")
        with pytest.raises(StructuralError, match="more than one class") as excinfo:
            combine_networks(arm, ipd)
        assert excinfo.value.labels == ["B"]

    def test_empty_source_keeps_classes(self, arm_classes):
        """An empty source does not remove classes."""
        arm = network_from_agd_arm(arm_classes, study="studyc", trt="trtc",
                                   r="r", n="n", trt_class="cls")
        with warnings.catch_warnings():
            warnings.simplefilter("error", NetworkAdvisory)
            net = combine_networks(arm, Network.empty())
        assert net == arm
