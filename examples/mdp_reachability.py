"""MDP Reachability -- extremal probabilities and rewards for a retrying client.

Demonstrates MDP construction, minimal/maximal reachability probabilities
with the schedulers attaining them, bounded reachability, bound comparison
and expected-cost analysis.
"""

from sparse_prctl import (
    ComparisonType,
    OptimizationDirection,
    SparseMdpPrctlModelChecker,
    build_mdp,
    check_probability_bound,
)

MIN = OptimizationDirection.MINIMIZE
MAX = OptimizationDirection.MAXIMIZE

# =============================================================
# Model: client choosing between a fast and a reliable endpoint
# =============================================================
print("=== Endpoint Selection Model ===")

mdp = build_mdp(
    {0: {"idle"}, 1: {"waiting"}, 2: {"success"}, 3: {"failure"}},
    {
        # idle: fast endpoint (action 0) or reliable endpoint (action 1)
        0: [
            [(2, 0.70), (1, 0.20), (3, 0.10)],
            [(2, 0.50), (1, 0.50)],
        ],
        # waiting: retry (action 0) or give up (action 1)
        1: [
            [(0, 1.0)],
            [(3, 1.0)],
        ],
        # Absorbing
        2: [[(2, 1.0)]],
        3: [[(3, 1.0)]],
    },
    state_rewards={0: 1.0, 1: 3.0},
)
print(f"States: {mdp.number_of_states}, choices: {mdp.number_of_choices}")

checker = SparseMdpPrctlModelChecker(mdp)
success = mdp.states_with_label("success")

# Best and worst case over all schedulers
for direction in (MAX, MIN):
    result = checker.check_eventually(direction, success)
    assert result.scheduler is not None
    print(f"\nP{direction.value[:3]}(eventually success) = {result[0]:.6f}")
    print(f"  scheduler: {result.scheduler.choices}")

# Bounded reachability
print("\nP_max(success within k steps):")
for steps in (1, 2, 4, 8):
    result = checker.check_bounded_eventually(MAX, success, steps)
    print(f"  k={steps}: {result[0]:.6f}")

# Does every scheduler succeed with probability at least 0.5?
worst = checker.check_eventually(MIN, success)
satisfied = check_probability_bound(worst, ComparisonType.GREATER_EQUAL, 0.5)
print(f"\nP_min >= 0.5 holds initially: {satisfied.holds_in_all(mdp.initial_states)}")

# =============================================================
# Expected cost until the client stops
# =============================================================
print("\n=== Expected Cost ===")

done = success | mdp.states_with_label("failure")
for direction in (MIN, MAX):
    cost = checker.check_reachability_reward(direction, done)
    print(f"R{direction.value[:3]}(reach done) = {cost[0]:.4f}")

cumulative = checker.check_cumulative_reward(MAX, 5)
print(f"R_max(cost within 5 steps) = {cumulative[0]:.4f}")
