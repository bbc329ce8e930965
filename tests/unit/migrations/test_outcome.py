"""
Unit tests for execution outcome parsing and classification.

Tests cover:
- Parsing raw results into Direct / Wrapped / Unrecognized outcomes
- Direct status classification and default details
- One-level unwrap of wrapped results
- Permissive handling of unexpected shapes
"""

from types import SimpleNamespace

import pytest

from bootloader.migrations.outcome import (
    Classification,
    ClassificationKind,
    DirectOutcome,
    ExecutionStatus,
    UnrecognizedOutcome,
    WrappedOutcome,
    classify,
    classify_result,
    parse_outcome,
)


class TestParseOutcome:
    """Test parsing raw results into outcome variants."""

    @pytest.mark.parametrize('status', ['applied', 'complete', 'error', 'skipped'])
    def test_direct_statuses(self, status):
        outcome = parse_outcome({'status': status})

        assert isinstance(outcome, DirectOutcome)
        assert outcome.status is ExecutionStatus(status)

    def test_direct_carries_error_and_reason(self):
        outcome = parse_outcome({'status': 'error', 'error': 'syntax error', 'reason': 'x'})

        assert outcome.error == 'syntax error'
        assert outcome.reason == 'x'

    def test_object_with_attributes(self):
        outcome = parse_outcome(SimpleNamespace(status='skipped', reason='not needed'))

        assert isinstance(outcome, DirectOutcome)
        assert outcome.status is ExecutionStatus.SKIPPED
        assert outcome.reason == 'not needed'

    def test_wrapped_list(self):
        outcome = parse_outcome({'migrations': [{'status': 'applied'}, {'status': 'error'}]})

        assert isinstance(outcome, WrappedOutcome)
        assert len(outcome.entries) == 2

    def test_recognized_status_wins_over_wrapped_list(self):
        outcome = parse_outcome({'status': 'error', 'migrations': [{'status': 'applied'}]})

        assert isinstance(outcome, DirectOutcome)
        assert outcome.status is ExecutionStatus.ERROR

    def test_unknown_status_with_list_is_wrapped(self):
        outcome = parse_outcome({'status': 'pending', 'migrations': [{'status': 'applied'}]})

        assert isinstance(outcome, WrappedOutcome)

    @pytest.mark.parametrize('raw', [
        None,
        {},
        {'status': 'pending'},
        {'migrations': []},
        {'migrations': 'applied'},
        'applied',
        42,
        SimpleNamespace(),
    ])
    def test_unrecognized_shapes(self, raw):
        assert isinstance(parse_outcome(raw), UnrecognizedOutcome)

    def test_unhashable_status_is_unrecognized(self):
        assert isinstance(parse_outcome({'status': ['applied']}), UnrecognizedOutcome)


class TestClassifyDirect:
    """Test classification of direct statuses."""

    @pytest.mark.parametrize('status', ['applied', 'complete'])
    def test_applied_and_complete(self, status):
        classification = classify_result({'status': status})

        assert classification.kind is ClassificationKind.APPLIED
        assert not classification.triggers_fail_fast

    def test_error_triggers_fail_fast(self):
        classification = classify_result({'status': 'error', 'error': 'boom'})

        assert classification.kind is ClassificationKind.FAILED
        assert classification.detail == 'boom'
        assert classification.triggers_fail_fast

    def test_error_detail_defaults(self):
        assert classify_result({'status': 'error'}).detail == 'Unknown error'

    def test_skipped_is_not_failure(self):
        classification = classify_result({'status': 'skipped', 'reason': 'nothing to do'})

        assert classification.kind is ClassificationKind.SKIPPED
        assert classification.detail == 'nothing to do'
        assert classification.declared
        assert not classification.triggers_fail_fast

    def test_skipped_reason_defaults(self):
        assert classify_result({'status': 'skipped'}).detail == 'Unknown'


class TestClassifyWrapped:
    """Test one-level unwrap of nested results."""

    def test_nested_applied_counts_as_applied(self):
        classification = classify_result({'migrations': [{'status': 'applied'}]})

        assert classification.kind is ClassificationKind.APPLIED

    def test_nested_complete_counts_as_applied(self):
        classification = classify_result({'migrations': [{'status': 'complete'}]})

        assert classification.kind is ClassificationKind.APPLIED

    def test_nested_error(self):
        classification = classify_result({'migrations': [{'status': 'error', 'error': 'bad DDL'}]})

        assert classification.kind is ClassificationKind.FAILED
        assert classification.detail == 'bad DDL'

    def test_nested_error_detail_defaults(self):
        classification = classify_result({'migrations': [{'status': 'error'}]})

        assert classification.detail == 'Unknown error'

    def test_nested_skipped(self):
        classification = classify_result({'migrations': [{'status': 'skipped'}]})

        assert classification.kind is ClassificationKind.SKIPPED
        assert classification.detail == 'Unknown'
        assert classification.declared

    def test_only_first_entry_is_used(self):
        classification = classify_result({
            'migrations': [{'status': 'applied'}, {'status': 'error'}]
        })

        assert classification.kind is ClassificationKind.APPLIED

    def test_unwraps_only_one_level(self):
        classification = classify_result({
            'migrations': [{'migrations': [{'status': 'applied'}]}]
        })

        assert classification.kind is ClassificationKind.SKIPPED
        assert not classification.declared

    @pytest.mark.parametrize('entry', [None, 'applied', {'status': 'pending'}, {}])
    def test_unrecognized_first_entry(self, entry):
        classification = classify_result({'migrations': [entry]})

        assert classification.kind is ClassificationKind.SKIPPED
        assert not classification.declared


class TestClassifyUnrecognized:
    """Test the permissive default for unexpected shapes."""

    @pytest.mark.parametrize('raw', [None, {}, {'ok': True}, 'done'])
    def test_counts_as_undeclared_skip(self, raw):
        classification = classify_result(raw)

        assert classification.kind is ClassificationKind.SKIPPED
        assert classification.detail is None
        assert not classification.declared
        assert not classification.triggers_fail_fast

    def test_classify_accepts_variant_directly(self):
        assert classify(UnrecognizedOutcome()) == Classification(
            ClassificationKind.SKIPPED, declared=False
        )
