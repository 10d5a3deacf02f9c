"""Tests for ngac."""
