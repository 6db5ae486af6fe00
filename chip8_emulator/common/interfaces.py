# common/interfaces.py
from abc import ABC, abstractmethod
import typing as t

class CPU(ABC):
    @abstractmethod
    def reset(self) -> None:
        """Reset the CPU to initial state."""
        pass
        
    @abstractmethod
    def step(self) -> int:
        """Execute one instruction and return cycles used."""
        pass
        
    @abstractmethod
    def get_state(self) -> dict:
        """Return the current CPU state as a dictionary."""
        pass
        
    @abstractmethod
    def set_memory(self, memory: 'Memory') -> None:
        """Connect the CPU to a memory system."""
        pass

class Memory(ABC):
    @abstractmethod
    def read(self, address: int) -> int:
        """Read a byte from the specified address."""
        pass
        
    @abstractmethod
    def write(self, address: int, value: int) -> None:
        """Write a byte to the specified address."""
        pass
        
    @abstractmethod
    def load_rom(self, rom_data: bytes, offset: int) -> None:
        """Load ROM data into memory at the given offset."""
        pass

class VideoProcessor(ABC):
    @abstractmethod
    def clear(self) -> None:
        """Turn every pixel off."""
        pass

    @abstractmethod
    def draw_sprite(self, x: int, y: int, rows: bytes) -> bool:
        """XOR a sprite onto the screen. Return True on collision."""
        pass
        
    @abstractmethod
    def get_frame_buffer(self) -> t.Any:
        """Get the current frame buffer."""
        pass
        
    @abstractmethod
    def get_state(self) -> dict:
        """Return the current display state as a dictionary."""
        pass

class InputDevice(ABC):
    @abstractmethod
    def is_pressed(self, key: int) -> bool:
        """Return True while the key is held down."""
        pass

    @abstractmethod
    def first_pressed(self) -> t.Optional[int]:
        """Return the lowest-numbered pressed key, or None."""
        pass

    @abstractmethod
    def get_state(self) -> dict:
        """Return the current input state as a dictionary."""
        pass

class System(ABC):
    @abstractmethod
    def __init__(self, config: dict):
        """Initialize the system with configuration."""
        pass
        
    @abstractmethod
    def load_rom(self, rom_path: str) -> None:
        """Load a ROM file."""
        pass

    @abstractmethod
    def load_program(self, data: bytes, offset: int) -> None:
        """Load program bytes into memory."""
        pass
        
    @abstractmethod
    def reset(self) -> None:
        """Reset the system."""
        pass

    @abstractmethod
    def step(self) -> None:
        """Run one fetch-decode-execute cycle."""
        pass
        
    @abstractmethod
    def run_frame(self) -> dict:
        """Run one frame and return state data."""
        pass
        
    @abstractmethod
    def get_system_state(self) -> dict:
        """Get complete system state."""
        pass
