import time
import timeit

import jax
import jax.numpy as jnp
import numpy as np

from chip8core import create_state, load_program, run_n_steps, STATUS_OK

# Fills the screen with random 8x1 sprites: every instance draws a different picture.
RANDOM_ROM = bytes([
    0xA2, 0x0E,  # 0x200: I = 0x20E
    0xC0, 0x3F,  # 0x202: V0 = rand & 63
    0xC1, 0x1F,  # 0x204: V1 = rand & 31
    0xD0, 0x11,  # 0x206: draw 1 row at (V0, V1)
    0x72, 0x01,  # 0x208: V2 += 1
    0x12, 0x00,  # 0x20A: jump 0x200
    0x00, 0x00,
    0xFF,        # 0x20E: sprite row
])


def time_it_measure(bench, repeat=10, number=3) -> np.ndarray:
    times = timeit.repeat(bench, repeat=repeat, number=number)
    return np.array(times) / number


if __name__ == "__main__":
    num_machines = 1000
    num_steps = 1000

    def make_state(rng):
        return load_program(create_state(rng), RANDOM_ROM)

    rngs = jax.random.split(jax.random.PRNGKey(0), num_machines)
    states = jax.vmap(make_state)(rngs)

    batched_run = jax.jit(jax.vmap(lambda state: run_n_steps(state, num_steps)))

    # Measure compilation time
    start_compile = time.perf_counter()
    compiled = batched_run.lower(states).compile()
    end_compile = time.perf_counter()
    print("Compilation time (s):", end_compile - start_compile)

    final_states, statuses = jax.block_until_ready(compiled(states))
    assert bool(jnp.all(statuses == STATUS_OK))
    print("Sprites drawn per machine:", int(final_states.V[0, 2]))
    print("Lit pixels (first 5 machines):", jnp.sum(final_states.display[:5], axis=(1, 2)))

    # Measure execution time
    def bench():
        jax.block_until_ready(compiled(states))

    times = time_it_measure(bench)
    q1, q3 = np.quantile(times, [0.25, 0.75])
    print("Mean time (s):", times.mean())
    print("Q1 (s):", q1)
    print("Q3 (s):", q3)
    print("Instructions per second:", num_machines * num_steps / times.mean())
