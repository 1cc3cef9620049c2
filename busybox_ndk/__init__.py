"""BusyBox NDK — cross-compile BusyBox for Android and package it as a Magisk module."""

__version__ = "0.1.0"
