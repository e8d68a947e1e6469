"""
Check template assets for every supported game
Usage: python scripts/check_assets.py [assets_root]
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from aim_trainer_ai.config import config
from aim_trainer_ai.config.games import SUPPORTED_GAMES, asset_folder
from aim_trainer_ai.perception.template_matcher import CATEGORIES, CROSSHAIRS, HIT_MARKERS, TemplateMatcher


def main():
    root = sys.argv[1] if len(sys.argv) > 1 else config.ASSETS_PATH
    print("=" * 60)
    print(f"  Template assets in {os.path.abspath(root)}")
    print("=" * 60)

    ready = 0
    for game in sorted(SUPPORTED_GAMES):
        folder = asset_folder(game, root)
        if not os.path.isdir(folder):
            print(f"\n{game}: missing ({folder})")
            continue

        matcher = TemplateMatcher.load(folder)
        print(f"\n{game}:")
        for category in CATEGORIES:
            print(f"  {category:<30} {len(matcher.templates(category))}")

        # hits can't be labelled without both of these
        if matcher.has_category(CROSSHAIRS) and matcher.has_category(HIT_MARKERS):
            ready += 1
        else:
            print(f"  WARNING: {game} needs crosshair and hit marker templates to label hits")

    print(f"\n{ready}/{len(SUPPORTED_GAMES)} games ready")
    return 0 if ready else 1


if __name__ == "__main__":
    sys.exit(main())
