"""子命令实现"""
