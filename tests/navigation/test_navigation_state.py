"""
Tests for the published navigation state
"""

import pytest

from tripnav.core.models import NavigationStatus
from tripnav.navigation.state import NavigationState


class TestNavigationState:
    """Test derived state properties"""

    def test_defaults(self):
        state = NavigationState()
        assert state.status == NavigationStatus.IDLE
        assert not state.is_active
        assert not state.can_retry

    @pytest.mark.parametrize("distance,due", [
        (210.0, False),
        (180.0, True),
        (120.0, False),
        (100.0, True),
        (80.0, False),
        (45.0, True),
        (20.0, False),
    ])
    def test_announcement_bands(self, distance, due):
        """Test prompts fall due only inside the distance bands"""
        state = NavigationState(status=NavigationStatus.NAVIGATING, distance_to_next_step=distance)
        assert state.announcement_due is due

    def test_no_announcement_unless_navigating(self):
        state = NavigationState(status=NavigationStatus.ROUTING_IN_PROGRESS, distance_to_next_step=45.0)
        assert not state.announcement_due

    def test_failed_state_carries_error(self):
        """Test error is exposed on a failed state"""
        error = RuntimeError("timed out")
        state = NavigationState(status=NavigationStatus.ROUTING_FAILED, error=error)
        assert state.can_retry
        assert state.is_active
        assert state.error is error
