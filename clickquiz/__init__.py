"""
Click-target quiz builder for screen recordings.

Turns an uploaded screen recording into candidate frames, and scores
quiz attempts against the expected click targets.
"""

__version__ = "1.0.0"
