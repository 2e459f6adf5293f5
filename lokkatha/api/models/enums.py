"""Enum types shared by API models."""

from enum import Enum


class Region(str, Enum):
    """Geographic region a tale belongs to."""

    HIMALAYAN = "Himalayan"
    KATHMANDU_VALLEY = "Kathmandu Valley"
    TERAI = "Terai"
    MID_HILLS = "Mid-Hills"
