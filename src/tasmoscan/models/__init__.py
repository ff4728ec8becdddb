"""Data models for tasmoscan."""

from tasmoscan.models.device import Device

__all__ = ["Device"]
