from stream_scoring.step.scoring_step import ScoringStep

__all__ = ["ScoringStep"]
