"""
UCCA Temporal Basic Usage Example

This example demonstrates generating timed formulas for a small control
structure, evaluating them against an operator-built trace and printing
the violations found.
"""

from ucca_temporal import (
    ControlAction,
    Controller,
    EngineConfig,
    EventTrace,
    TemporalLogicEngine,
    TimedEvent,
    TimingConstraint,
)


def main():
    """Demonstrate basic engine usage."""

    print("=" * 60)
    print("UCCA Temporal - Basic Usage Example")
    print("=" * 60)

    # =========================================================================
    # Step 1: Describe the control structure
    # =========================================================================
    print("\n[1] Loading controllers and control actions...")

    controllers = [
        Controller(id="pilot", name="Pilot", type="human"),
        Controller(id="fcs", name="Flight Control System"),
    ]
    actions = [
        ControlAction(id="arm", controller_id="pilot", verb="arm", object="spoilers"),
        ControlAction(id="deploy", controller_id="fcs", verb="deploy", object="spoilers"),
        ControlAction(id="hold", controller_id="fcs", verb="hold", object="brakes"),
    ]

    engine = TemporalLogicEngine(EngineConfig(log_level="WARNING"))
    engine.load_catalog(controllers, actions)
    print(f"  ✓ {len(controllers)} controllers, {len(actions)} actions")

    # =========================================================================
    # Step 2: Generate candidate formulas
    # =========================================================================
    print("\n[2] Generating candidate formulas...")

    formulas = []
    for constraint in (TimingConstraint.TOO_EARLY, TimingConstraint.TOO_LATE):
        generated = engine.generate(controllers, actions, constraint)
        formulas.extend(generated)
        print(f"  ✓ {constraint.value}: {len(generated)} formulas")

    formulas.extend(engine.generate(controllers, actions, TimingConstraint.TOO_LONG))

    for formula in formulas[:4]:
        print(f"      - {formula.id}: {engine.describe(formula)}")

    # =========================================================================
    # Step 3: Build a trace
    # =========================================================================
    print("\n[3] Building trace...")

    trace = EventTrace.from_unordered(
        [
            TimedEvent(timestamp=0, controller_id="pilot", action_id="arm"),
            TimedEvent(timestamp=7000, controller_id="fcs", action_id="deploy"),
            TimedEvent(timestamp=8000, controller_id="fcs", action_id="hold"),
            TimedEvent(timestamp=20000, controller_id="fcs", action_id="hold", provided=False),
        ],
        metadata={"scenario": "late spoiler deployment"},
    )
    print(f"  ✓ {len(trace)} events from t={trace.start_time} to t={trace.end_time}")

    # =========================================================================
    # Step 4: Evaluate
    # =========================================================================
    print("\n[4] Evaluating formulas...")

    batch = engine.evaluate_all(formulas, trace)
    failed = [r for r in batch.results if not r.satisfied]
    print(f"  ✓ {len(batch.results)} evaluated, {len(failed)} violated")

    for violation in batch.violations:
        print(f"    - [{violation.severity.value}] @{violation.at_timestamp}ms "
              f"{violation.description}")

    # =========================================================================
    # Step 5: Statistics
    # =========================================================================
    stats = engine.get_statistics()
    print("\n[5] Statistics:")
    print(f"    - Formulas generated: {stats['generation']['formulas']}")
    print(f"    - Satisfaction rate: {stats['evaluation']['satisfaction_rate']:.0%}")

    print("\n" + "=" * 60)
    print("Example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
