"""Tests for wave-coordinator."""
