"""
Server-side exam logic that does not touch HTTP.

grading:     quiz scoring, completion percentage, timing plausibility checks
scoreboard:  ranked scoreboard rows for one exam
"""
