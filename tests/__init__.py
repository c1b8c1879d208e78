"""Tests for the fritzclient package."""
