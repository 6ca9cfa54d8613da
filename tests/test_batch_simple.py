"""Simple tests for the batch engine that don't spawn any processes."""
import math
from pathlib import Path


def _specs(tmp_path, count):
    from par5.batch.runner import InvocationSpec
    from par5.batch.sinks import SinkAllocator

    allocator = SinkAllocator(tmp_path)
    return [
        InvocationSpec(
            index=i,
            item=f"item{i}",
            command="true",
            sinks=allocator.allocate("run", f"item{i}"),
        )
        for i in range(count)
    ]


def test_progress_tracker():
    """Test progress tracking functionality."""
    from par5.batch.progress import ProgressTracker

    tracker = ProgressTracker(total=4, group_total=2)

    assert tracker.percentage == 0.0
    assert tracker.processed == 0

    tracker.record("a")
    tracker.record("b", timed_out=True)
    tracker.complete_group()

    assert tracker.processed == 2
    assert tracker.timed_out == 1
    assert tracker.groups_completed == 1
    assert tracker.percentage == 50.0

    tracker.record("c", spawn_failed=True)
    tracker.record("d")
    tracker.complete_group()
    tracker.finish()

    data = tracker.to_dict()
    assert data["total"] == 4
    assert data["processed"] == 4
    assert data["groups_completed"] == 2
    assert data["timed_out"] == 1
    assert data["spawn_failed"] == 1
    assert data["percentage"] == 100.0
    assert data["current_item"] == "d"


def test_progress_tracker_elapsed_frozen_after_finish():
    """Elapsed time stops moving once the run is finished."""
    from par5.batch.progress import ProgressTracker

    tracker = ProgressTracker(total=0)
    tracker.finish()
    first = tracker.elapsed_seconds
    assert tracker.elapsed_seconds == first
    assert tracker.percentage == 100.0


def test_shell_quote_always_wraps():
    """Every value becomes one single-quoted word."""
    from par5.batch.templates import shell_quote

    assert shell_quote("plain") == "'plain'"
    assert shell_quote("") == "''"
    assert shell_quote("it's") == "'it'\\''s'"


def test_expand_shell_replaces_every_placeholder():
    """All $item occurrences are replaced with the quoted item."""
    from par5.batch.templates import expand_shell

    assert expand_shell("wc -l $item", "src/a b.py") == "wc -l 'src/a b.py'"
    assert expand_shell("diff $item $item.bak", "x") == "diff 'x' 'x'.bak"
    assert expand_shell("echo hello", "ignored") == "echo hello"


def test_expand_prompt_is_plain_text():
    """Prompt substitution does no escaping."""
    from par5.batch.templates import expand_prompt

    prompt = expand_prompt("Review {{item}}; then {{item}} again", "it's.py")
    assert prompt == "Review it's.py; then it's.py again"
    assert expand_prompt("No placeholder", "x") == "No placeholder"


def test_safe_filename_alphabet_and_length():
    """Sanitized names only use [A-Za-z0-9._-] and stay within 100 chars."""
    import re

    from par5.batch.sinks import MAX_NAME_LENGTH, safe_filename

    samples = [
        "src/components/Button.tsx",
        "https://example.com/a?b=c&d=e",
        "it's a \"name\" with spaces; and `ticks`",
        "ünïcødé/файл.txt",
        "dir/",
        "/",
        "",
        "x" * 500,
        "../../etc/passwd",
    ]
    for item in samples:
        name = safe_filename(item)
        assert re.fullmatch(r"[A-Za-z0-9._-]+", name), (item, name)
        assert 0 < len(name) <= MAX_NAME_LENGTH

    assert safe_filename("src/components/Button.tsx") == "Button.tsx"
    assert safe_filename("dir/") == "dir"
    assert safe_filename("a b:c") == "a_b_c"
    assert safe_filename("/") == "_"
    assert len(safe_filename("y" * 300)) == 100


def test_sink_allocation_is_idempotent(tmp_path):
    """Same (run id, item) always yields the same sink paths."""
    from par5.batch.sinks import SinkAllocator

    allocator = SinkAllocator(tmp_path)
    first = allocator.allocate("run-1", "src/a.py")
    second = allocator.allocate("run-1", "src/a.py")

    assert first == second
    assert first.stdout == tmp_path / "run-1" / "a.py.stdout.txt"
    assert first.stderr == tmp_path / "run-1" / "a.py.stderr.txt"
    assert allocator.allocate("run-2", "src/a.py") != first
    # Allocation alone never touches the filesystem.
    assert not (tmp_path / "run-1").exists()


def test_sink_allocator_prepare_creates_run_dir(tmp_path):
    """prepare() creates the run directory including parents."""
    from par5.batch.sinks import SinkAllocator

    allocator = SinkAllocator(tmp_path / "nested" / "results")
    run_id = allocator.new_run_id()
    run_dir = allocator.prepare(run_id)

    assert run_dir.is_dir()
    assert run_dir == tmp_path / "nested" / "results" / run_id
    assert allocator.new_run_id() != run_id


def test_partition_group_sizes(tmp_path):
    """ceil(N / W) groups, group i holding min(W, N - i*W) items, in order."""
    from par5.batch.scheduler import partition

    for count in range(0, 13):
        specs = _specs(tmp_path, count)
        for width in range(1, 8):
            groups = partition(specs, width)
            assert len(groups) == math.ceil(count / width)
            for i, group in enumerate(groups):
                assert len(group) == min(width, count - i * width)
            assert [s for g in groups for s in g] == specs


def test_partition_rejects_zero_width(tmp_path):
    """Width zero is rejected instead of looping forever."""
    import pytest

    from par5.batch.scheduler import partition
    from par5.core.config import ConfigError

    with pytest.raises(ConfigError):
        partition(_specs(tmp_path, 3), 0)


def test_build_summary_keeps_item_order(tmp_path):
    """Summary entries follow item order and report group counts."""
    from par5.batch.progress import ProgressTracker
    from par5.batch.report import build_summary
    from par5.batch.scheduler import RunContext

    specs = _specs(tmp_path, 5)
    context = RunContext(run_id="run", run_dir=Path(tmp_path) / "run", width=2, specs=specs)
    tracker = ProgressTracker(total=5)
    tracker.finish()

    summary = build_summary(context, tracker, label="shell commands")

    assert summary.invocation_count == 5
    assert summary.group_count == 3
    assert [item for item, _ in summary.entries] == [s.item for s in specs]
    text = summary.to_text()
    assert text.startswith("Completed 5 shell commands in 3 batch(es) of up to 2")
    assert f'- item0: stdout at "{specs[0].sinks.stdout}"' in text
    data = summary.to_dict()
    assert data["outputs"][4]["item"] == "item4"
    assert data["outputs"][4]["stderr"] == str(specs[4].sinks.stderr)


def test_build_summary_empty_run(tmp_path):
    """An empty run has zero groups."""
    from par5.batch.progress import ProgressTracker
    from par5.batch.report import build_summary
    from par5.batch.scheduler import RunContext

    context = RunContext(run_id="run", run_dir=Path(tmp_path), width=10)
    summary = build_summary(context, ProgressTracker(total=0))
    assert summary.group_count == 0
    assert summary.entries == []
    assert "(none)" in summary.to_text()
