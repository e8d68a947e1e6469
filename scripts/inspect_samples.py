"""
Inspect exported training samples
Usage: python scripts/inspect_samples.py <samples.json> [<samples.json> ...]
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from aim_trainer_ai.learning import load_samples


def inspect_samples(path: str):
    samples = load_samples(path)
    if not samples:
        print(f"{path}: no samples")
        return

    with_crosshair = sum(1 for s in samples if s.has_crosshair)
    hits = [s for s in samples if s.hit]
    print(f"{path}")
    print(f"  frames:    {samples[0].frame_index}..{samples[-1].frame_index} ({len(samples)} samples)")
    print(f"  crosshair: {with_crosshair}/{len(samples)} frames ({100.0 * with_crosshair / len(samples):.1f}%)")
    print(f"  hits:      {len(hits)}")
    for s in hits[:10]:
        print(f"    frame {s.frame_index} @ {s.timestamp:.2f}s crosshair=({s.crosshair_x}, {s.crosshair_y})")
    if len(hits) > 10:
        print(f"    ... {len(hits) - 10} more")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts/inspect_samples.py <samples.json> [<samples.json> ...]")
        print("\nExample:")
        print("  python scripts/inspect_samples.py data/training_samples_20250101_120000_000.json")
        sys.exit(1)

    for sample_path in sys.argv[1:]:
        inspect_samples(sample_path)
