"""
Catcher Test Suite
==================

Property-based tests for critical invariants.

Philosophy:
- Focus on invariants (properties that must always be true)
- Test critical paths (stabilizer, game engine, MQTT, game loop)
- NOT 100% coverage - only key behaviors

Modules:
- test_stabilization: Majority-vote stabilizer
- test_game_engine: Game engine state machine
- test_game_loop: Driver loop (headless, scripted poses)
- test_mqtt_commands: MQTT control commands and data plane
- test_config_validation: Pydantic config
- test_scripted_classifier / test_visualization / test_events_monitor
"""
