"""
OpenGL viewport for previewing the replication grid.
"""
from PySide6.QtOpenGLWidgets import QOpenGLWidget
from PySide6.QtCore import Qt, QPoint
from OpenGL.GL import *
from OpenGL.GLU import *


class Viewport(QOpenGLWidget):
    """Top-down preview of every grid cell inside the machine envelope."""

    def __init__(self, parent=None):
        super().__init__(parent)

        # Preview data: list of (Instance, skipped) pairs
        self.cells = []
        self.part_min = (0.0, 0.0)
        self.part_size = (0.0, 0.0)
        self.machine_limits = (400.0, 400.0)

        # Camera controls
        self.zoom = -600.0
        self.x_rot = 0.0
        self.z_rot = 0.0
        self.last_pos = QPoint()

        self.show_envelope = True
        self.show_axes = True

    def set_preview(self, cells, part_min, part_size, machine_limits):
        """Update the preview; ``cells`` pairs each Instance with its skipped flag."""
        self.cells = list(cells or [])
        self.part_min = tuple(part_min)
        self.part_size = tuple(part_size)
        self.machine_limits = tuple(machine_limits)
        self.auto_fit_view()
        self.update()

    def auto_fit_view(self):
        """Fit the camera to the envelope and the grid."""
        xs = [0.0, self.machine_limits[0]]
        ys = [0.0, self.machine_limits[1]]
        for instance, _ in self.cells:
            xs.append(self.part_min[0] + instance.offset_x)
            xs.append(self.part_min[0] + instance.offset_x + self.part_size[0])
            ys.append(self.part_min[1] + instance.offset_y)
            ys.append(self.part_min[1] + instance.offset_y + self.part_size[1])

        size = max(max(xs) - min(xs), max(ys) - min(ys))
        self.zoom = -max(size * 1.3, 10.0)

    def initializeGL(self):
        glClearColor(0.1, 0.1, 0.15, 1.0)
        glEnable(GL_LINE_SMOOTH)
        glEnable(GL_BLEND)
        glBlendFunc(GL_SRC_ALPHA, GL_ONE_MINUS_SRC_ALPHA)

    def resizeGL(self, w, h):
        glViewport(0, 0, w, h)
        glMatrixMode(GL_PROJECTION)
        glLoadIdentity()
        gluPerspective(45, w/h if h > 0 else 1, 0.1, 10000.0)

    def paintGL(self):
        glClear(GL_COLOR_BUFFER_BIT | GL_DEPTH_BUFFER_BIT)
        glMatrixMode(GL_MODELVIEW)
        glLoadIdentity()

        # Centre the envelope, then apply the camera
        glTranslatef(0, 0, self.zoom)
        glRotatef(self.x_rot, 1, 0, 0)
        glRotatef(self.z_rot, 0, 0, 1)
        glTranslatef(-self.machine_limits[0] / 2, -self.machine_limits[1] / 2, 0)

        if self.show_envelope:
            self.draw_envelope()
        if self.show_axes:
            self.draw_axes()

        self.draw_cells()

    def draw_envelope(self):
        """Machine travel limits."""
        glLineWidth(1.5)
        glColor3f(0.5, 0.5, 0.5)
        self.draw_rect(0.0, 0.0, self.machine_limits[0], self.machine_limits[1])

    def draw_axes(self):
        length = max(self.machine_limits) * 0.1
        glLineWidth(3.0)

        glBegin(GL_LINES)
        # X axis - Red
        glColor3f(1.0, 0.0, 0.0)
        glVertex3f(0, 0, 0)
        glVertex3f(length, 0, 0)

        # Y axis - Green
        glColor3f(0.0, 1.0, 0.0)
        glVertex3f(0, 0, 0)
        glVertex3f(0, length, 0)
        glEnd()

    def draw_cells(self):
        width, height = self.part_size
        for instance, skipped in self.cells:
            x = self.part_min[0] + instance.offset_x
            y = self.part_min[1] + instance.offset_y
            if skipped:
                self.draw_dashed_rect(x, y, width, height, (0.6, 0.3, 0.3))
            else:
                self.draw_filled_rect(x, y, width, height, (0.2, 0.5, 1.0))

    def draw_rect(self, x, y, width, height):
        glBegin(GL_LINE_LOOP)
        glVertex3f(x, y, 0)
        glVertex3f(x + width, y, 0)
        glVertex3f(x + width, y + height, 0)
        glVertex3f(x, y + height, 0)
        glEnd()

    def draw_filled_rect(self, x, y, width, height, color):
        """Footprint of a generated part: translucent fill with a solid outline."""
        glColor4f(color[0], color[1], color[2], 0.35)
        glBegin(GL_QUADS)
        glVertex3f(x, y, 0)
        glVertex3f(x + width, y, 0)
        glVertex3f(x + width, y + height, 0)
        glVertex3f(x, y + height, 0)
        glEnd()

        glLineWidth(2.0)
        glColor3f(*color)
        self.draw_rect(x, y, width, height)

    def draw_dashed_rect(self, x, y, width, height, color):
        """Footprint of a skipped cell."""
        glLineWidth(1.5)
        glColor3f(*color)

        glLineStipple(1, 0xAAAA)
        glEnable(GL_LINE_STIPPLE)
        self.draw_rect(x, y, width, height)
        glDisable(GL_LINE_STIPPLE)

    def mousePressEvent(self, event):
        self.last_pos = event.pos()

    def mouseMoveEvent(self, event):
        """Left drag tilts and rotates the preview."""
        dx = event.pos().x() - self.last_pos.x()
        dy = event.pos().y() - self.last_pos.y()

        if event.buttons() & Qt.LeftButton:
            self.x_rot += dy * 0.5
            self.z_rot += dx * 0.5

        self.last_pos = event.pos()
        self.update()

    def mouseDoubleClickEvent(self, event):
        self.reset_view()

    def wheelEvent(self, event):
        delta = event.angleDelta().y() / 120.0
        self.zoom += delta * abs(self.zoom) * 0.1
        self.update()

    def reset_view(self):
        """Back to the top-down view."""
        self.x_rot = 0.0
        self.z_rot = 0.0
        self.auto_fit_view()
        self.update()
