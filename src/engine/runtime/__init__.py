"""
どこで: `engine.runtime` サブパッケージ。
何を: TaskSet/IntervalTimer/FrameRunner と、それらを所有し tick を扇状に配る TaskRegistry、
      例外隔離付きの TaskDispatcher を提供。
なぜ: 周期処理とフレーム処理の登録を一元化し、1 つのタスクの失敗が全体を止めないようにするため。
"""
