import os
import threading
import time

import psutil

MEM_SAMPLE_INTERVAL = 0.01


class MemoryMonitor(threading.Thread):
    """Samples this process's RSS in the background and keeps the peak (bytes)."""

    def __init__(self, interval=MEM_SAMPLE_INTERVAL):
        super().__init__(daemon=True)
        self.interval = interval
        self.peak = 0
        self.running = True

    def run(self):
        proc = psutil.Process(os.getpid())
        self.peak = proc.memory_info().rss
        while self.running:
            try:
                self.peak = max(self.peak, proc.memory_info().rss)
            except psutil.Error:
                break
            time.sleep(self.interval)

    def stop(self):
        self.running = False

    @property
    def peak_mb(self):
        return self.peak / (1024 * 1024)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc):
        self.stop()
        self.join()
        return False
