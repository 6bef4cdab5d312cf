"""Tests for result flattening and outcome parsing."""

import logging

from opstatus.core.status.results import DeliveryOutcome, flatten_results


class TestFlattenResults:
    """Tests for flatten_results()."""

    def test_flat_list_unchanged(self):
        """A flat list comes back in order."""
        assert flatten_results([1, 2, 3]) == [1, 2, 3]

    def test_nested_lists_and_tuples(self):
        """Lists and tuples at any depth are flattened in order."""
        assert flatten_results([1, [2, (3, [4])], [], 5]) == [1, 2, 3, 4, 5]

    def test_dicts_are_leaves(self):
        """Mappings are not iterated."""
        entry = {"device": {"deviceType": "ios"}}
        assert flatten_results([[entry]]) == [entry]

    def test_non_sequence_input(self):
        """Anything that is not a list or tuple yields nothing."""
        assert flatten_results(None) == []
        assert flatten_results({"a": 1}) == []
        assert flatten_results("abc") == []

    def test_depth_limit_drops_deeper_groups(self, caplog):
        """Groups nested past max_depth are dropped with a warning."""
        with caplog.at_level(logging.WARNING):
            flat = flatten_results([1, [2, [3, [4]]]], max_depth=2)

        assert flat == [1, 2]
        assert "nested deeper than 2" in caplog.text

    def test_deep_nesting_does_not_recurse_forever(self):
        """Pathologically deep input is bounded by the default depth."""
        nested: list = [1]
        for _ in range(500):
            nested = [nested]

        assert flatten_results(nested) == []


class TestDeliveryOutcome:
    """Tests for DeliveryOutcome.from_result()."""

    def test_full_result(self):
        """All fields are extracted from the provider shape."""
        outcome = DeliveryOutcome.from_result(
            {
                "device": {"deviceType": "android", "deviceToken": "tok"},
                "transmitted": True,
                "response": {"registration_id": "new"},
            }
        )

        assert outcome == DeliveryOutcome("android", "tok", transmitted=True, stale_token=True)

    def test_snake_case_keys(self):
        """snake_case device keys are accepted too."""
        outcome = DeliveryOutcome.from_result(
            {"device": {"device_type": "ios", "device_token": "t"}}
        )

        assert outcome.device_type == "ios"
        assert outcome.device_token == "t"
        assert outcome.transmitted is False
        assert outcome.stale_token is False

    def test_unattributable_results(self):
        """Entries without a device type are rejected."""
        for result in (None, "x", 3, {}, {"device": None}, {"device": {}},
                       {"device": {"deviceType": ""}}, {"device": ["ios"]}):
            assert DeliveryOutcome.from_result(result) is None

    def test_response_without_registration_id(self):
        """Only a registration_id marks the token as stale."""
        outcome = DeliveryOutcome.from_result(
            {"device": {"deviceType": "ios"}, "response": {"error": "x"}}
        )
        assert outcome.stale_token is False
