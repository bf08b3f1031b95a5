"""Shared fixtures for nmanet tests."""

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def arm_counts():
    """Two two-arm studies with count outcomes."""
    return pd.DataFrame({
        "studyc": ["S1", "S1", "S2", "S2"],
        "trtc": ["A", "B", "A", "B"],
        "r": [5, 8, 3, 4],
        "n": [20, 22, 15, 14],
    })


@pytest.fixture
def arm_means():
    """Continuous arm-based data with sample sizes and a covariate."""
    return pd.DataFrame({
        "studyc": ["S1", "S1", "S2", "S2", "S3", "S3"],
        "trtc": ["A", "B", "A", "C", "A", "D"],
        "y": [1.2, 0.8, 1.1, 0.5, 1.3, 0.9],
        "se": [0.2, 0.25, 0.3, 0.3, 0.2, 0.22],
        "size": [40, 42, 55, 51, 38, 36],
        "age": [61.0, 60.5, 58.2, 59.0, 63.1, 62.4],
    })


@pytest.fixture
def contrast_data():
    """Contrast-based data: two two-arm studies and one three-arm study."""
    return pd.DataFrame({
        "studyc": ["P1", "P1", "P2", "P2", "P3", "P3", "P3"],
        "trtc": ["A", "B", "A", "C", "B", "C", "D"],
        "diff": [np.nan, -1.2, np.nan, -0.8, np.nan, 0.3, -0.5],
        "se_diff": [np.nan, 0.4, np.nan, 0.5, 0.3, 0.45, 0.5],
        "n": [50, 48, 60, 61, 40, 41, 39],
    })


@pytest.fixture
def ipd_binary():
    """Individual patient data with a binary outcome."""
    return pd.DataFrame({
        "studyc": ["I1"] * 4 + ["I2"] * 4,
        "trtc": ["B", "B", "C", "C", "B", "B", "C", "C"],
        "event": [0, 1, 1, 1, 0, 0, 1, 0],
        "weight": [70.1, 82.3, 65.0, 90.2, 77.7, 68.4, 71.9, 88.0],
    })


@pytest.fixture
def arm_classes():
    """Arm-based data with treatment classes; A is the best-connected."""
    return pd.DataFrame({
        "studyc": ["S1", "S1", "S2", "S2", "S3", "S3"],
        "trtc": ["A", "B", "A", "C", "A", "D"],
        "cls": ["Placebo", "Drug", "Placebo", "Drug", "Placebo", "Surgery"],
        "r": [3, 9, 4, 10, 2, 7],
        "n": [30, 31, 28, 29, 25, 26],
    })
