"""
Main Entry Point: Aim Trainer AI
Same commands as the aim-trainer-ai console script
"""
import sys

from aim_trainer_ai.cli import main

if __name__ == "__main__":
    sys.exit(main())
