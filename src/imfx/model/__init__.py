"""
The MODEL layer contains the pure data structures of the compiler.
It has NO knowledge of images, the grammar or the command line.
It deals with operation tags and the encoded word buffer.
"""
