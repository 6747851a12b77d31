"""Test suite for netstorage-driver."""
