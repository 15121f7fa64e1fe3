import signal
import threading


class CtrlCHandler:
    """
    Turn Ctrl+C (and SIGTERM) into a stop flag so a monitoring session
    cancels its timers and unregisters its sensors before exiting.
    """
    def __init__(self):
        self.should_stop = False
        self._stopped = threading.Event()
        for signum in (signal.SIGINT, signal.SIGTERM):
            signal.signal(signum, self._on_signal)

    def _on_signal(self, signum, frame):
        print(f"\n[INFO] {signal.Signals(signum).name} received, stopping session...")
        self.should_stop = True
        self._stopped.set()

    def wait(self, timeout=None) -> bool:
        """Sleep up to ``timeout`` seconds; True as soon as a stop was requested."""
        return self._stopped.wait(timeout)
