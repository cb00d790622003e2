"""
Tests for ACL seeding.
"""

import sys

import pytest

from esboot.seed import seed_acl


class TestSeedAcl:
    """Test running the seeding helper."""

    @pytest.mark.asyncio
    async def test_disabled(self):
        """Test an empty command does nothing."""
        assert await seed_acl("") is True

    @pytest.mark.asyncio
    async def test_success(self):
        """Test a zero exit."""
        assert await seed_acl(f"{sys.executable} -c 'print(1)'") is True

    @pytest.mark.asyncio
    async def test_failure(self):
        """Test a non-zero exit is reported, not raised."""
        assert await seed_acl(f"{sys.executable} -c 'raise SystemExit(3)'") is False

    @pytest.mark.asyncio
    async def test_missing_helper(self):
        """Test a missing executable is reported, not raised."""
        assert await seed_acl("definitely-not-an-es-seed-acl-binary") is False
