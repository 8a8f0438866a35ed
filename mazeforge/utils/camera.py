import time

import numpy as np
import pybullet as p


def track_body(cli, position, distance: float = 12.0, pitch: float = -55.0) -> None:
    """Keep the pybullet spectator camera locked on *position*."""
    tgt = np.add(position, [0.0, 0.0, 1.0])            # look slightly above the floor
    p.resetDebugVisualizerCamera(cameraDistance=distance,
                                 cameraYaw=0,
                                 cameraPitch=pitch,     # steep enough to see over walls
                                 cameraTargetPosition=tgt.tolist(),
                                 physicsClientId=cli)


def safe_disconnect_gui(client_id: int) -> None:
    """Stop rendering, give the viewer loop a moment, then disconnect."""
    try:
        p.configureDebugVisualizer(p.COV_ENABLE_RENDERING, 0,
                                   physicsClientId=client_id)
        p.configureDebugVisualizer(p.COV_ENABLE_GUI,        0,
                                   physicsClientId=client_id)
        p.removeAllUserDebugItems(physicsClientId=client_id)
        time.sleep(0.5)
    finally:
        p.disconnect(physicsClientId=client_id)
