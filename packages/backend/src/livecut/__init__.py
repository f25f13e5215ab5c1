"""LiveCut — multi-camera live broadcast coordination.

Organizers create events, phone operators join as camera sources, a
director picks the on-air camera, and viewers watch the program feed
with a chat sidebar. Video transport itself is delegated to Mux.
"""

__version__ = "0.1.0"
