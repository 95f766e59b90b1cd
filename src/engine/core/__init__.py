"""
どこで: `engine.core` サブパッケージ。
何を: タスク保持能力（TaskHolder）と dt 計測ドライバ（FrameClock）の最小インターフェースを提供。
なぜ: ランタイム層と外部ドライバ（pyglet 等）の間の依存を薄く保つため。
"""
