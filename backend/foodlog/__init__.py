"""
Chat-driven nutrition and exercise logging: classify, ground, ask, parse, score, confirm, persist.
"""
