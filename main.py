# main.py
"""
Main entry point for the Rock Paper Scissors simulation.

This script orchestrates the entire simulation lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Sets up the window, the particle population and the frame scheduler.
4. Runs the frame loop until the user quits or one kind takes over
   and the window is closed.
5. Handles clean shutdown.
"""
import cProfile
import io
import logging
import pstats
import sys

from constants import FPS
from utils import load_config, setup_logging


def main(config_path: str = 'config.json') -> int:
    """
    The main function to run the simulation.
    """
    # Load configuration from the JSON file first.
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config(config_path)
    except Exception as e:
        print(f"FATAL: Could not load {config_path}. Error: {e}")
        return 1

    setup_logging(config)

    logging.info("--- Rock Paper Scissors Simulation Starting ---")

    sim_params = config['simulation_parameters']
    run_params = config['run_control']
    vis_params = config['visualization']

    from scheduler import FrameScheduler
    from simulation import Simulation
    from visualization import Visualizer

    # --- Component Initialization ---
    # 1. The simulation validates its parameters before any window opens.
    sim = Simulation(sim_params)

    # 2. The visualizer determines the viewport dimensions.
    visualizer = Visualizer(vis_params, particle_size=sim.particle_size)

    # 3. Seed the population for that viewport and hook the tick to the frame loop.
    try:
        sim.reset(visualizer.width, visualizer.height)
    except ValueError:
        visualizer.close()
        return 1
    scheduler = FrameScheduler(FPS)
    sim.start(scheduler)

    profiler = cProfile.Profile() if run_params.get('profile') else None

    log_throttle = max(1, run_params.get('log_throttle_steps', 300))
    max_steps = run_params.get('max_steps', 0)
    last_logged = 0

    running = True
    if profiler is not None:
        profiler.enable()
    while running:
        scheduler.dispatch()

        if not visualizer.draw(sim.snapshot()):
            running = False

        # A new viewport replaces the whole population
        new_size = visualizer.take_resize()
        if new_size is not None:
            try:
                sim.reset(*new_size)
                last_logged = 0
            except ValueError:
                logging.warning(f"Window too small ({new_size[0]}x{new_size[1]}); keeping the current population.")

        # Hot loops must throttle logs
        if sim.tick - last_logged >= log_throttle:
            last_logged = sim.tick
            logging.info(f"Simulation tick {sim.tick}")
            logging.debug(f"Tick {sim.tick} | Counts: {sim.counts()}")

        if max_steps and sim.tick >= max_steps:
            logging.info(f"Reached max_steps ({max_steps}). Stopping simulation.")
            running = False

        scheduler.wait()

    if profiler is not None:
        profiler.disable()

    sim.stop()
    visualizer.close()
    logging.info("Simulation loop finished.")

    if profiler is not None:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20) # Print top 20 slowest functions
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Rock Paper Scissors Simulation Shutting Down ---")
    return 0


def run() -> None:
    sys.exit(main(*sys.argv[1:2]))


if __name__ == "__main__":
    run()
