# Fixed-step scheduler.
# Instructions run at config.cycles_per_second and frames (timers, sound,
# rendering) at config.frame_rate, both driven off one monotonic clock with a
# catch-up accumulator: however late a tick arrives, it runs exactly as many
# instructions as the elapsed time is worth.
#
# Collaborators are duck-typed:
#   renderer.clear(), renderer.render()
#   input_scanner.poll()
#   buzzer.beep()            (optional)

import time

from .log import log

NS_PER_SECOND = 1_000_000_000
# longest backlog one tick will work off, in frames
MAX_CATCHUP_FRAMES = 4


class Scheduler:
    def __init__(self, vm, renderer, input_scanner, buzzer=None, config=None,
                 clock=time.perf_counter_ns, sleep=time.sleep):
        self.vm = vm
        self.renderer = renderer
        self.input = input_scanner
        self.buzzer = buzzer
        self.clock = clock
        self.sleep = sleep
        self.cancelled = False

        self.accumulated = 0
        self.last_cycle_time = None
        self.last_render = None

        # ---- Performance counters ----
        self.fps = 0.0
        self.cps = 0
        self._fps_counter = 0
        self._cps_counter = 0
        self._bench_time = None

        self.configure(config or vm.config)

    def configure(self, config):
        """Apply a new Config; both periods are recomputed from it."""
        self.config = config
        self.vm.configure(config)
        self.cycle_period = NS_PER_SECOND // config.cycles_per_second
        self.frame_period = NS_PER_SECOND // config.frame_rate
        self.max_catchup = max(MAX_CATCHUP_FRAMES * self.frame_period, self.cycle_period)
        log(f"Scheduler: {config.cycles_per_second} cycles/s, {config.frame_rate} frames/s, "
            f"{config.implementation} quirks")

    def cancel(self):
        self.cancelled = True

    def start(self):
        now = self.clock()
        self.accumulated = 0
        self.last_cycle_time = now
        self.last_render = now
        self._bench_time = now
        self._fps_counter = 0
        self._cps_counter = 0

    def tick(self):
        """One scheduler iteration. Returns the VM's Fault if it stopped, else None."""
        if self.last_cycle_time is None:
            self.start()
        now = self.clock()
        self.accumulated += now - self.last_cycle_time
        self.last_cycle_time = now
        # after a host stall, drop whatever is owed beyond a few frames
        self.accumulated = min(self.accumulated, self.max_catchup)

        # Fetch-Decode-Execute
        while self.accumulated >= self.cycle_period:
            self.accumulated -= self.cycle_period
            fault = self.vm.step()
            if fault is not None:
                return fault
            self._cps_counter += 1
            self.input.poll()

        # Timers, sound and render
        if now - self.last_render >= self.frame_period:
            self.last_render += self.frame_period
            if now - self.last_render >= self.frame_period:
                self.last_render = now
            self._frame()

        self._update_bench(now)
        return None

    def _frame(self):
        timers = self.vm.timers
        timers.decrement_timers()
        if timers.get_sound_timer() > 0 and self.buzzer is not None:
            self.buzzer.beep()
        self.renderer.render()
        self._fps_counter += 1

    def _update_bench(self, now):
        elapsed = now - self._bench_time
        if elapsed >= NS_PER_SECOND:
            self.fps = self._fps_counter * NS_PER_SECOND / elapsed
            self.cps = self._cps_counter
            self._fps_counter = 0
            self._cps_counter = 0
            self._bench_time = now

    def run(self):
        """Loop until cancel() or a fault. Returns the Fault, or None when cancelled."""
        self.renderer.clear()
        self.start()
        while not self.cancelled:
            fault = self.tick()
            if fault is not None:
                log(f"Stopped after {self.vm.cycle_count} cycles: {fault.message}")
                return fault
            self.sleep(self.config.idle_sleep)
        log("Scheduler cancelled")
        return None
