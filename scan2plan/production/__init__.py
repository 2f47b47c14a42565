"""
Production lifecycle: stage registry and the stage-to-stage prefill cascade.
"""
