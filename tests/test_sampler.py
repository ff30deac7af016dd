"""Tests for representative sampling."""

import pytest

from groupdigest.summarization.sampler import sample


class TestSampleBounds:
    """Output size guarantees."""

    def test_input_that_fits_is_returned_unchanged(self, make_bursts):
        messages = make_bursts([3, 4])
        assert sample(messages, 7) == messages
        assert sample(messages, 100) == messages

    def test_empty_input(self):
        assert sample([], 10) == []

    @pytest.mark.parametrize("target", [0, 1, 5, 9, 13, 20, 29])
    def test_never_exceeds_target(self, make_bursts, target):
        messages = make_bursts([4, 7, 2, 9, 1, 6])
        result = sample(messages, target)
        assert len(result) <= target

    @pytest.mark.parametrize("target", [1, 5, 9, 13, 20, 28])
    def test_oversized_input_fills_target_exactly(self, make_bursts, target):
        messages = make_bursts([4, 7, 2, 9, 1, 6])
        assert len(sample(messages, target)) == target

    def test_negative_target_rejected(self, make_bursts):
        with pytest.raises(ValueError):
            sample(make_bursts([3]), -1)


class TestSampleSelection:
    """Which messages get picked."""

    def test_first_and_last_blocks_kept(self, make_bursts):
        messages = make_bursts([2, 10, 10, 10, 2])
        result = sample(messages, 10)

        assert messages[:2] == result[:2]
        assert messages[-2:] == result[-2:]

    def test_largest_blocks_then_partial_fill(self, make_bursts):
        # blocks: first(2) b1(3) b2(5) b3(4) last(2)
        messages = make_bursts([2, 3, 5, 4, 2])
        result = sample(messages, 10)

        first, b1, b2, b3, last = messages[:2], messages[2:5], messages[5:10], messages[10:14], messages[14:]
        # edges (4) + b2 (5) = 9, then one message from b3 fills the remainder
        assert result == first + b2 + b3[:1] + last
        assert not set(b1) & set(result)

    def test_result_is_chronological(self, make_bursts):
        messages = make_bursts([1, 2, 8, 3, 6, 1])
        result = sample(messages, 12)
        positions = [messages.index(m) for m in result]
        assert positions == sorted(positions)

    def test_equal_sized_blocks_prefer_earlier(self, make_bursts):
        messages = make_bursts([1, 3, 3, 1])
        result = sample(messages, 5)
        assert result == messages[:4] + messages[-1:]

    def test_edges_that_do_not_fit_compete_by_size(self, make_bursts):
        """When first+last exceed the target they are ranked like any block."""
        messages = make_bursts([6, 2, 6])
        result = sample(messages, 8)
        # first block (6) wins the size tie, last block fills the remaining 2
        assert result == messages[:6] + messages[8:10]

    def test_single_block_is_truncated_to_its_start(self, make_message):
        messages = [make_message(i) for i in range(20)]
        assert sample(messages, 5) == messages[:5]

    def test_duplicate_message_values_are_counted_by_position(self, make_message):
        messages = [make_message(0, text="same")] * 4 + [make_message(100, text="same")] * 4
        result = sample(messages, 6)
        assert len(result) == 6
