"""
Logger utility for the Banker's Scheduler Simulator.

Provides per-process logging with verbosity levels.
"""

from typing import Optional, Sequence
from datetime import datetime


class SimulatorLogger:
    """
    Logger for simulation events and decisions.

    Format: "t=X: Process PY requests [a, b] - GRANTED/DENIED (reason)"
    """

    def __init__(self, verbose: bool = False, log_file: Optional[str] = None, quiet: bool = False):
        """
        Initialize logger.

        Args:
            verbose: Enable verbose output
            log_file: Optional file path for logging
            quiet: Suppress console output (file output is kept)
        """
        self.verbose = verbose
        self.quiet = quiet
        self.log_file = log_file
        self.file_handle = None

        if self.log_file:
            self.file_handle = open(self.log_file, 'w', encoding='utf-8')
            self._write_header()

    def _write_header(self) -> None:
        """Write log file header."""
        if self.file_handle:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            self.file_handle.write(f"Simulation Log - {timestamp}\n")
            self.file_handle.write("="*60 + "\n\n")

    def log(self, message: str, level: str = "info") -> None:
        """
        Log a message.

        Args:
            message: Message to log
            level: Log level (info, debug, warning, error)
        """
        if level == "debug" and not self.verbose:
            return

        formatted = self._format_message(message, level)

        # Console output
        if not self.quiet:
            print(formatted)

        # File output
        if self.file_handle:
            self.file_handle.write(formatted + "\n")
            self.file_handle.flush()

    def _format_message(self, message: str, level: str) -> str:
        """Format message with level prefix."""
        if level == "error":
            return f"[ERROR] {message}"
        elif level == "warning":
            return f"[WARNING] {message}"
        elif level == "debug":
            return f"[DEBUG] {message}"
        else:
            return message

    def log_time(self, time: int, message: str, level: str = "info") -> None:
        """Log a message stamped with the simulation clock."""
        self.log(f"t={time}: {message}", level)

    def log_request(
        self,
        time: int,
        pid: int,
        amounts: Sequence[int],
        granted: bool,
        reason: str
    ) -> None:
        """
        Log a resource request.

        Args:
            time: Current simulation clock
            pid: Process ID
            amounts: Amounts requested per resource type
            granted: Whether request was granted
            reason: Reason for decision
        """
        status = "GRANTED" if granted else "DENIED"
        message = f"P{pid} requests {list(amounts)} - {status} ({reason})"
        self.log_time(time, message, "info" if granted else "warning")

    def log_release(self, time: int, pid: int, amounts: Sequence[int]) -> None:
        """Log a resource release."""
        self.log_time(time, f"P{pid} releases {list(amounts)}")

    def log_process_start(self, time: int, pid: int, detail: str = "") -> None:
        """Log the start of a process run."""
        suffix = f" ({detail})" if detail else ""
        self.log_time(time, f"Executing Process {pid}{suffix}")

    def log_process_complete(self, pid: int, state: str, computation_time: int) -> None:
        """
        Log the end of a process run.

        Args:
            pid: Process ID
            state: Final process state
            computation_time: Total computation time executed
        """
        self.log(f"Process {pid} {state.lower()} in {computation_time} units.")

    def log_system_state(self, time: int, state_str: str) -> None:
        """
        Log system state snapshot.

        Args:
            time: Current simulation clock
            state_str: Formatted system state
        """
        self.log_time(time, f"System State:\n{state_str}")

    def log_banner(self, title: str) -> None:
        """Log a section banner."""
        self.log(f"\n{'='*60}")
        self.log(title)
        self.log(f"{'='*60}\n")

    def close(self) -> None:
        """Close log file if open."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None

    def __del__(self):
        """Cleanup on destruction."""
        self.close()
