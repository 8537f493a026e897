"""Unit tests for the geometry fault counter."""

import taichi as ti


class TestFaultCounter:
    """Tests for record_fault, clear_faults and get_fault_count."""

    def test_starts_at_zero(self):
        """Test that the counter is clear at the start of a test."""
        from spheretrace.core.faults import get_fault_count

        assert get_fault_count() == 0

    def test_parallel_faults_are_all_counted(self):
        """Test that concurrent record_fault calls are not lost."""
        from spheretrace.core.faults import get_fault_count, record_fault

        @ti.kernel
        def test_kernel():
            for i in range(1000):
                if i % 4 == 0:
                    record_fault()

        test_kernel()
        assert get_fault_count() == 250

    def test_clear_faults(self):
        """Test that clear_faults resets the counter."""
        from spheretrace.core.faults import clear_faults, get_fault_count, record_fault

        @ti.kernel
        def test_kernel():
            record_fault()

        test_kernel()
        assert get_fault_count() == 1

        clear_faults()
        assert get_fault_count() == 0
