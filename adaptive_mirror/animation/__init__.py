from .particle_engine import ParticleField
from .ambient_widget import AmbientWidget
from .sound_manager import SoundManager

__all__ = ["ParticleField", "AmbientWidget", "SoundManager"]
