from colorama import init as colorama_init, Fore, Style
from datetime import datetime
colorama_init(autoreset=True)


class Log:
    def __init__(self, verbose: int = 1):
        self.verbose = verbose
        self.SITE = Fore.MAGENTA

    def _time(self):
        return datetime.now().strftime("[%H:%M:%S]")

    def _fmt(self, level: str, color: str):
        return f"{self._time()} {color}[{level}]{Style.RESET_ALL}"

    def info(self, msg: str):
        if self.verbose >= 1:
            print(f"{self._fmt('INFO', Fore.CYAN)} {msg}")

    def warn(self, msg: str):
        if self.verbose >= 0:
            print(f"{self._fmt('WARNING', Fore.YELLOW)} {msg}")

    def ok(self, msg: str):
        print(f"{self._fmt('SUCCESS', Fore.GREEN)} {msg}")

    def fail(self, msg: str):
        print(f"{self._fmt('FAIL', Fore.RED)} {msg}")

    def debug(self, msg: str):
        if self.verbose >= 2:
            print(f"{self._fmt('DEBUG', Fore.MAGENTA)} {msg}")

    def site(self, index: int, total: int, result, elapsed: float):
        """One summary line per audited site."""
        progress = f"{Style.DIM}({index}/{total}, {elapsed:.1f}s){Style.RESET_ALL}"
        name = f"{self.SITE}{result.site.domain}{Style.RESET_ALL}"
        if result.failed:
            print(f"{self._fmt('FAIL', Fore.RED)} {name} "
                  f"{'; '.join(result.audit_errors)} {progress}")
        else:
            print(f"{self._fmt('SUCCESS', Fore.GREEN)} {name} audited {progress}")

        if self.verbose >= 2:
            for kind in result.selection.enabled:
                value = result.get(kind)
                if isinstance(value, list):
                    value = f"{len(value)} entries" if value else "-"
                self.debug(f"  {kind.label:<18} {value}")
