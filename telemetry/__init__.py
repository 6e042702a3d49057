"""Navigation session telemetry"""
