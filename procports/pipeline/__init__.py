from .channel import Closed, Pipe, spawn, stage
