"""Decoding and reporting of Cortex-M hard faults."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass


def ipsr_isr_number_to_str(isr_number: int) -> str:
    """Name the exception for an IPSR exception number."""
    if isr_number < 0:
        raise ValueError("exception number must not be negative")
    names = {
        0: "Thread Mode",
        1: "Reserved",
        2: "NMI",
        3: "HardFault",
        4: "MemManage",
        5: "BusFault",
        6: "UsageFault",
        11: "SVCall",
        12: "Reserved for Debug",
        13: "Reserved",
        14: "PendSV",
        15: "SysTick",
    }
    if isr_number in names:
        return names[isr_number]
    if 7 <= isr_number <= 10:
        return "Reserved"
    if 16 <= isr_number <= 255:
        return "IRQn"
    return "(Unknown! Illegal value?)"


@dataclass(frozen=True)
class ExceptionFrame:
    """Registers stacked by the processor on exception entry."""

    r0: int = 0
    r1: int = 0
    r2: int = 0
    r3: int = 0
    r12: int = 0
    lr: int = 0
    pc: int = 0
    xpsr: int = 0

    @property
    def ici_it(self) -> int:
        return (((self.xpsr >> 25) & 0x3) << 6) | ((self.xpsr >> 10) & 0x3F)

    @property
    def thumb(self) -> bool:
        return (self.xpsr >> 24) & 0x1 == 1

    @property
    def exception_number(self) -> int:
        return self.xpsr & 0x1FF


def _bit(value: int, mask: int) -> bool:
    return value & mask == mask


@dataclass(frozen=True)
class FaultStatus:
    """Fault causes decoded from the CFSR and HFSR registers."""

    iaccviol: bool = False
    daccviol: bool = False
    munstkerr: bool = False
    mstkerr: bool = False
    mlsperr: bool = False
    mmfarvalid: bool = False
    ibuserr: bool = False
    preciserr: bool = False
    impreciserr: bool = False
    unstkerr: bool = False
    stkerr: bool = False
    lsperr: bool = False
    bfarvalid: bool = False
    undefinstr: bool = False
    invstate: bool = False
    invpc: bool = False
    nocp: bool = False
    unaligned: bool = False
    divbyzero: bool = False
    vecttbl: bool = False
    forced: bool = False

    @classmethod
    def from_registers(cls, cfsr: int, hfsr: int) -> FaultStatus:
        """Decode the configurable and hard fault status registers."""
        mmfsr = cfsr
        bfsr = cfsr >> 8
        ufsr = cfsr >> 16
        return cls(
            iaccviol=_bit(mmfsr, 0x01),
            daccviol=_bit(mmfsr, 0x02),
            munstkerr=_bit(mmfsr, 0x08),
            mstkerr=_bit(mmfsr, 0x10),
            mlsperr=_bit(mmfsr, 0x20),
            mmfarvalid=_bit(mmfsr, 0x80),
            ibuserr=_bit(bfsr, 0x01),
            preciserr=_bit(bfsr, 0x02),
            impreciserr=_bit(bfsr, 0x04),
            unstkerr=_bit(bfsr, 0x08),
            stkerr=_bit(bfsr, 0x10),
            lsperr=_bit(bfsr, 0x20),
            bfarvalid=_bit(bfsr, 0x80),
            undefinstr=_bit(ufsr, 0x01),
            invstate=_bit(ufsr, 0x02),
            invpc=_bit(ufsr, 0x04),
            nocp=_bit(ufsr, 0x08),
            unaligned=_bit(ufsr, 0x100),
            divbyzero=_bit(ufsr, 0x200),
            vecttbl=_bit(hfsr, 0x02),
            forced=_bit(hfsr, 0x40000000),
        )


_FLAG_LABELS = (
    ("Instruction Access Violation", "iaccviol"),
    ("Data Access Violation", "daccviol"),
    ("Memory Management Unstacking Fault", "munstkerr"),
    ("Memory Management Stacking Fault", "mstkerr"),
    ("Memory Management Lazy FP Fault", "mlsperr"),
    ("Instruction Bus Error", "ibuserr"),
    ("Precise Data Bus Error", "preciserr"),
    ("Imprecise Data Bus Error", "impreciserr"),
    ("Bus Unstacking Fault", "unstkerr"),
    ("Bus Stacking Fault", "stkerr"),
    ("Bus Lazy FP Fault", "lsperr"),
    ("Undefined Instruction Usage Fault", "undefinstr"),
    ("Invalid State Usage Fault", "invstate"),
    ("Invalid PC Load Usage Fault", "invpc"),
    ("No Coprocessor Usage Fault", "nocp"),
    ("Unaligned Access Usage Fault", "unaligned"),
    ("Divide By Zero", "divbyzero"),
    ("Bus Fault on Vector Table Read", "vecttbl"),
    ("Forced Hard Fault", "forced"),
)


def _flag_lines(status: FaultStatus) -> Iterator[str]:
    """Yield one aligned report line per decoded fault flag."""
    for label, attribute in _FLAG_LABELS:
        value = str(getattr(status, attribute)).lower()
        yield f"\t{label + ':':<35} {value}"


def format_hardfault(
    frame: ExceptionFrame,
    shcsr: int,
    cfsr: int,
    hfsr: int,
    mmfar: int,
    bfar: int,
    kernel_version: str | None = None,
) -> str:
    """Render the verbose hard fault report for the given register values."""
    status = FaultStatus.from_registers(cfsr, hfsr)
    xpsr = frame.xpsr
    ge = "".join(str((xpsr >> bit) & 0x1) for bit in (19, 18, 17, 16))
    exc = frame.exception_number
    thumb = str(frame.thumb).lower()
    mmfar_valid = str(status.mmfarvalid).lower()
    bfar_valid = str(status.bfarvalid).lower()
    lines = [
        "Kernel HardFault.",
        f"\tKernel version {kernel_version if kernel_version is not None else 'unknown'}",
        f"\tr0  0x{frame.r0:x}",
        f"\tr1  0x{frame.r1:x}",
        f"\tr2  0x{frame.r2:x}",
        f"\tr3  0x{frame.r3:x}",
        f"\tr12 0x{frame.r12:x}",
        f"\tlr  0x{frame.lr:x}",
        f"\tpc  0x{frame.pc:x}",
        f"\tprs 0x{xpsr:x} [ N {(xpsr >> 31) & 1} Z {(xpsr >> 30) & 1} "
        f"C {(xpsr >> 29) & 1} V {(xpsr >> 28) & 1} Q {(xpsr >> 27) & 1} "
        f"GE {ge} ; ICI.IT {frame.ici_it} T {thumb} ; "
        f"Exc {exc}-{ipsr_isr_number_to_str(exc)} ]",
        "\tsp  0x0",
        "\ttop of stack     0x0",
        "\tbottom of stack  0x0",
        f"\tSHCSR 0x{shcsr:x}",
        f"\tCFSR  0x{cfsr:x}",
        f"\tHSFR  0x{hfsr:x}",
        *_flag_lines(status),
        f"\tFaulting Memory Address: (valid: {mmfar_valid}) 0x{mmfar:08X}",
        f"\tBus Fault Address:       (valid: {bfar_valid}) 0x{bfar:08X}",
    ]
    return "".join(line + "\r\n" for line in lines)